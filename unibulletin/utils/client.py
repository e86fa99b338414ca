"""Request helpers."""

from typing import Optional


def get_client_ip(request, trust_proxy_headers: bool = False) -> Optional[str]:
    """
    Extract client IP from request.

    X-Forwarded-For is only honoured when trust_proxy_headers is set, i.e.
    when a reverse proxy in front of the app overwrites it. Otherwise any
    client could pick its own address.
    """
    if trust_proxy_headers:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            # First IP in the list is the client
            return forwarded_for.split(",")[0].strip()

    if hasattr(request, "client") and request.client:
        return request.client.host

    return None
