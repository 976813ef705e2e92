"""
Prometheus metrics for the signing and auth layer.

Counters only. Labels never carry addresses, keys or secrets.
"""

from typing import Optional
import logging

from prometheus_client import CollectorRegistry, Counter, REGISTRY

logger = logging.getLogger(__name__)


class Metrics:
    """
    Prometheus metrics collector.

    Tracks:
    - Orders signed (by side and signature type)
    - Auth headers built (by tier)
    - Credential handshakes (create/derive, outcome)
    - Signing failures
    - API requests (by method and status)
    """

    def __init__(self, enabled: bool = True, registry: Optional[CollectorRegistry] = None):
        """
        Initialize metrics.

        Args:
            enabled: Enable metrics collection
            registry: Registry to register counters in (default: global registry)
        """
        self.enabled = enabled
        self.registry = registry if registry is not None else REGISTRY

        if not self.enabled:
            return

        self.orders_signed = Counter(
            'clob_orders_signed_total',
            'Total orders signed',
            ['side', 'signature_type'],
            registry=self.registry
        )

        self.auth_headers = Counter(
            'clob_auth_headers_total',
            'Total auth header sets built',
            ['level'],
            registry=self.registry
        )

        self.credential_handshakes = Counter(
            'clob_credential_handshakes_total',
            'Total API credential create/derive handshakes',
            ['operation', 'status'],
            registry=self.registry
        )

        self.signing_failures = Counter(
            'clob_signing_failures_total',
            'Total signing failures',
            ['operation'],
            registry=self.registry
        )

        self.api_requests = Counter(
            'clob_api_requests_total',
            'Total API requests',
            ['method', 'status'],
            registry=self.registry
        )

    def track_order_signed(self, side: str, signature_type: int) -> None:
        """Record a signed order."""
        if self.enabled:
            self.orders_signed.labels(side=side, signature_type=str(signature_type)).inc()

    def track_auth_headers(self, level: str) -> None:
        """Record an auth header set (\"L1\" or \"L2\")."""
        if self.enabled:
            self.auth_headers.labels(level=level).inc()

    def track_credential_handshake(self, operation: str, status: str) -> None:
        """Record a credential handshake outcome."""
        if self.enabled:
            self.credential_handshakes.labels(operation=operation, status=status).inc()

    def track_signing_failure(self, operation: str) -> None:
        """Record a signing failure."""
        if self.enabled:
            self.signing_failures.labels(operation=operation).inc()

    def track_api_request(self, method: str, status: str) -> None:
        """Record API request."""
        if self.enabled:
            self.api_requests.labels(method=method, status=status).inc()


# Global metrics instance
_metrics: Optional[Metrics] = None


def get_metrics(enabled: bool = True) -> Metrics:
    """
    Get global metrics instance.

    Args:
        enabled: Enable metrics (only honored on first call)

    Returns:
        Metrics instance
    """
    global _metrics

    if _metrics is None:
        _metrics = Metrics(enabled=enabled)

    return _metrics
