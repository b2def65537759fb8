"""
Caller identity for rate limiting.

Best-effort and spoofable: derived from X-Forwarded-For (when the
deployment sits behind a proxy that sets it) or the socket peer address.
Never used for access control.
"""

from __future__ import annotations

from typing import Mapping, Optional

from spec import UNKNOWN_CALLER_IDENTITY

FORWARDED_FOR_HEADER = "x-forwarded-for"


def caller_identity(
    headers: Mapping[str, str],
    client_host: Optional[str],
    *,
    trust_forwarded_for: bool = True,
) -> str:
    """
    Resolve the identity a request is rate limited under.

    Order:
    1. First entry of X-Forwarded-For (original client), if trusted
    2. Socket peer address
    3. UNKNOWN_CALLER_IDENTITY (all such callers share one quota)
    """
    if trust_forwarded_for:
        forwarded = _header(headers, FORWARDED_FOR_HEADER)
        if forwarded:
            first = forwarded.split(",", 1)[0].strip()
            if first:
                return first

    if client_host:
        return client_host

    return UNKNOWN_CALLER_IDENTITY


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    # Starlette Headers are case-insensitive already; plain dicts are not
    value = headers.get(name)
    if value is not None:
        return value
    for key, candidate in headers.items():
        if key.lower() == name:
            return candidate
    return None
