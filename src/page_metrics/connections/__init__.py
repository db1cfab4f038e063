from .manager import (
    Connection,
    ConnectionManager,
    EndpointRole,
    Endpoints,
    RetryPolicy,
    web3_http_factory,
)

__all__ = [
    "Connection",
    "ConnectionManager",
    "EndpointRole",
    "Endpoints",
    "RetryPolicy",
    "web3_http_factory",
]
