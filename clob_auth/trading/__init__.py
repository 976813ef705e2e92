"""Order construction and signing."""

from .order_builder import OrderSigner, generate_salt_from_key

__all__ = ["OrderSigner", "generate_salt_from_key"]
