"""Custom exceptions for Agent Activity Report."""


class AgentReportError(Exception):
    """Base exception for all Agent Activity Report errors."""


class ConfigurationError(AgentReportError):
    """Exception raised for configuration related errors."""


class AuthenticationError(AgentReportError):
    """Exception raised when no portal login candidate yields a token."""


class PortalAPIError(AgentReportError):
    """Exception raised for portal API request failures."""


class EndpointDiscoveryError(PortalAPIError):
    """Exception raised when every candidate endpoint has failed."""

    def __init__(self, message: str, attempts: list[str] | None = None) -> None:
        super().__init__(message)
        self.attempts = attempts or []


class UnexpectedPayloadError(PortalAPIError):
    """Exception raised when an upstream response has an unrecognised shape."""
