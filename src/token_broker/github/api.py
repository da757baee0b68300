"""
token_broker.github.api

Low-level request helper shared by the upstream clients.

Responsibilities:
- Build the bearer/accept/version/user-agent header set GitHub expects.
- Translate transport failures into `NetworkError`.
"""

from __future__ import annotations

from urllib.parse import quote

import httpx

from token_broker.errors import NetworkError, ValidationError

ACCEPT = "application/vnd.github+json"
DEFAULT_API_VERSION = "2022-11-28"
DEFAULT_USER_AGENT = "token-broker"


def github_headers(
    bearer: str,
    *,
    user_agent: str = DEFAULT_USER_AGENT,
    api_version: str = DEFAULT_API_VERSION,
) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {bearer}",
        "Accept": ACCEPT,
        "X-GitHub-Api-Version": api_version,
        "User-Agent": user_agent,
    }


def segment(value: str | int) -> str:
    """Percent-encode one URL path segment so it cannot address another resource."""
    text = str(value)
    # Bare dot segments survive quoting and would be collapsed by URL normalization.
    if text in ("", ".", ".."):
        raise ValidationError(f"invalid path segment: {text!r}")
    return quote(text, safe="")


async def send(
    http: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    headers: dict[str, str],
) -> httpx.Response:
    try:
        return await http.request(method, url, headers=headers)
    except httpx.TransportError as e:
        raise NetworkError(f"{method} {url} failed: {e}") from e


# --- Module Notes -----------------------------------------------------------
# No retries here: a failed call surfaces immediately and the caller decides.
