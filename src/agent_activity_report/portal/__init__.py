"""Telephony portal API clients.

This package contains token acquisition, endpoint discovery, response shape
resolution and the paginated fetchers for the agent status report and the
agent activity events stream.
"""

from .auth import CachedToken, TokenCache, TokenService
from .client import account_headers, create_http_client
from .events import AgentEventsClient
from .resolver import Candidate, CandidateResolver
from .status import AgentStatusClient

__all__ = [
    "AgentEventsClient",
    "AgentStatusClient",
    "CachedToken",
    "Candidate",
    "CandidateResolver",
    "TokenCache",
    "TokenService",
    "account_headers",
    "create_http_client",
]
