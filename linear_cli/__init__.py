"""
linear-cli: an agent-friendly command-line client for Linear.

The package exposes a thin async GraphQL client (`LinearClient`) and the `linear`
command-line tool under `linear_cli.cli`.
"""

from __future__ import annotations

from .client import LinearClient
from .exceptions import (
    AuthenticationError,
    GraphQLError,
    LinearError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ServerError,
)

__version__ = "0.6.0"

__all__ = [
    "AuthenticationError",
    "GraphQLError",
    "LinearClient",
    "LinearError",
    "NetworkError",
    "NotFoundError",
    "RateLimitError",
    "ServerError",
    "__version__",
]
