"""Error types for the routing engine.

Only two conditions are raised as exceptions: provider transport failures
(always caught at the oracle boundary) and configuration errors. Everything
else an operator or caller can act on travels as a result object tagged with
a RouteError.
"""

from enum import Enum


class RouteError(str, Enum):
    """Structured failure codes carried by oracle and planning results."""

    NO_LIQUIDITY_PROVIDER = "NO_LIQUIDITY_PROVIDER"
    NO_ROUTE_FOUND = "NO_ROUTE_FOUND"
    INVALID_ROUTE = "INVALID_ROUTE"
    CONSTRAINT_VIOLATION = "CONSTRAINT_VIOLATION"
    NOT_EXECUTABLE = "NOT_EXECUTABLE"
    ROUTING_DISABLED = "ROUTING_DISABLED"
    NO_CANDIDATES = "NO_CANDIDATES"


class ProviderTransportError(Exception):
    """A liquidity provider could not reach its data source.

    Raised for network errors, non-2xx responses and malformed payloads.
    The oracle treats it as "provider currently unusable" and moves on to
    the next provider; it never reaches planner callers.
    """

    def __init__(self, provider: str, detail: str) -> None:
        super().__init__(f"{provider}: {detail}")
        self.provider = provider
        self.detail = detail


class ConfigError(Exception):
    """A configuration document is missing, unreadable or invalid."""


__all__ = ["RouteError", "ProviderTransportError", "ConfigError"]
