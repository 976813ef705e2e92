"""Tests for the CLOB auth client."""
