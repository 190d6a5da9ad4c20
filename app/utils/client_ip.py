"""
Client Address Helpers

Derives the coarse caller address used for access logging and for
page-view deduplication. The value is never treated as an identity.
"""

from starlette.requests import Request

FORWARDED_FOR_HEADER = "x-forwarded-for"


def get_client_ip(request: Request) -> str:
    """
    Return the caller address for a request.

    Uses the first entry of X-Forwarded-For when the service sits behind a
    proxy, falling back to the socket peer address, then to an empty string.
    """
    forwarded = request.headers.get(FORWARDED_FOR_HEADER)
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    if request.client and request.client.host:
        return request.client.host

    return ""
