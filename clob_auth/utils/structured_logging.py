"""
Credential-safe logging.

CredentialRedactionFilter scrubs private keys, API secrets and passphrases
from every record that passes through a handler it is attached to.
"""

import logging
import re
from typing import Optional

from pythonjsonlogger.json import JsonFormatter


class CredentialRedactionFilter(logging.Filter):
    """
    Security filter that redacts credentials from log messages.

    - Redacts Ethereum private keys (0x followed by 64 hex chars)
    - Redacts API secrets and passphrases given as key=value / "key": "value"
    - Redacts long base64 strings (standard or URL-safe alphabet)

    Usage:
        >>> handler = logging.StreamHandler()
        >>> handler.addFilter(CredentialRedactionFilter())
        >>> logger.addHandler(handler)
    """

    PRIVATE_KEY_PATTERN = re.compile(r'0x[0-9a-fA-F]{64}')
    # Keep the prefix (secret=), replace the value
    API_SECRET_PATTERN = re.compile(
        r'((?:secret|passphrase|password|private_key)["\']?\s*[:=]\s*["\']?)[A-Za-z0-9+/_\-=]{8,}["\']?',
        re.IGNORECASE
    )
    BASE64_SECRET_PATTERN = re.compile(r'[A-Za-z0-9+/_\-]{40,}={0,2}')

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Redact credentials from log record.

        Returns:
            Always True (record is never dropped, just sanitized)
        """
        if record.msg:
            record.msg = self.redact(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self.redact(str(v)) for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(self.redact(str(arg)) for arg in record.args)

        if record.exc_text:
            record.exc_text = self.redact(record.exc_text)

        return True

    def redact(self, text: str) -> str:
        """Redact all credential patterns from text."""
        if not text:
            return text

        # Private keys first, most critical
        text = self.PRIVATE_KEY_PATTERN.sub('0x[REDACTED]', text)
        text = self.API_SECRET_PATTERN.sub(r'\1[REDACTED]', text)
        text = self.BASE64_SECRET_PATTERN.sub(lambda m: m.group(0)[:8] + '...[REDACTED]', text)

        return text


def configure_structured_logging(
    level: str = "INFO",
    enable_json: bool = True,
    enable_credential_redaction: bool = True,
    logger_name: Optional[str] = None
) -> logging.Handler:
    """
    Attach a single stream handler to a logger (root by default).

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        enable_json: Use JSON formatter (True for production)
        enable_credential_redaction: Add credential redaction filter
        logger_name: Logger to configure (None for root)

    Returns:
        The installed handler
    """
    target = logging.getLogger(logger_name)
    target.setLevel(getattr(logging, level.upper()))
    target.handlers.clear()

    handler = logging.StreamHandler()

    # SECURITY: Prevents credential leakage
    if enable_credential_redaction:
        handler.addFilter(CredentialRedactionFilter())

    if enable_json:
        formatter = JsonFormatter("%(asctime)s %(name)s %(levelname)s %(message)s")
    else:
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    handler.setFormatter(formatter)
    target.addHandler(handler)
    return handler
