"""
token_broker.broker

Credential issuance orchestration.

Responsibilities:
- Validate broker requests and resolve the membership gate in effect.
- Compose signing, exchange and membership checks behind one call.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# This package has no HTTP framework dependency; `token_broker.api` adapts it.
