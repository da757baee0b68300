"""
token_broker.client

Consumer side of the broker.

Responsibilities:
- Cache the issued credential and refresh it shortly before expiry.
- Attach the current credential to outbound platform API requests.
"""

from token_broker.client.auth import BrokerAuth, github_client
from token_broker.client.settings import ClientSettings
from token_broker.client.token_source import BrokerTokenSource, CredentialState

__all__ = ["BrokerAuth", "BrokerTokenSource", "ClientSettings", "CredentialState", "github_client"]
