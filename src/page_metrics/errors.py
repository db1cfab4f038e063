"""Error taxonomy for the aggregation engine.

Readers and aggregators raise these instead of bare strings so callers can tell an
unreachable endpoint apart from a malformed response.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .settings import Network


class PageMetricsError(Exception):
    """Base class for all page-metrics errors."""


class ConnectivityError(PageMetricsError):
    """Raised when no endpoint for a network could be reached or kept alive."""

    def __init__(
        self,
        network: Network | str,
        primary_error: BaseException | None = None,
        backup_error: BaseException | None = None,
        message: str | None = None,
    ):
        self.network = network
        self.primary_error = primary_error
        self.backup_error = backup_error
        if message is None:
            message = (
                f"Failed to connect to {_network_name(network)}: "
                f"primary={primary_error!r}, backup={backup_error!r}"
            )
        super().__init__(message)


class ApiError(PageMetricsError):
    """Raised when a REST collaborator answers with a non-2xx status."""

    def __init__(self, status_code: int, url: str, body: str = ""):
        self.status_code = status_code
        self.url = url
        self.body = body
        super().__init__(f"API returned status {status_code} for {url}")


class DataShapeError(PageMetricsError):
    """Raised when a response cannot be parsed into the expected structure."""


class PriceUnavailableError(PageMetricsError):
    """Raised when a network price cannot be fetched and no earlier value exists."""

    def __init__(self, network: Network | str, cause: BaseException | None = None):
        self.network = network
        self.cause = cause
        super().__init__(f"No price available for {_network_name(network)}: {cause}")


class WeightComputationError(PageMetricsError):
    """Internal: TVL values cannot be turned into weights. Never surfaced."""


def _network_name(network: Network | str) -> str:
    return getattr(network, "value", network)
