"""
token_broker.github

Upstream platform boundary.

Responsibilities:
- Sign GitHub App assertions and exchange them for installation credentials.
- Look up installations and verify organization/team membership.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Nothing here reads settings; every collaborator receives its httpx client
# (and therefore its base URL) from the composition root.
