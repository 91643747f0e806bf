"""Rate limiting configuration."""
from slowapi import Limiter
from slowapi.util import get_remote_address

from agora.core.config import settings


def get_client_ip(request):
    """
    Client IP for rate limiting and anonymous voter identity.

    X-Forwarded-For is only read when the connecting peer is a trusted proxy.
    The chain is then walked from the right, skipping trusted hops, so a
    value the client prepended itself is never picked.
    """
    peer = get_remote_address(request)
    trusted = settings.TRUSTED_PROXIES
    forwarded = request.headers.get("X-Forwarded-For")

    if not forwarded or peer not in trusted:
        return peer

    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted:
            return hop
    return hops[0] if hops else peer


limiter = Limiter(
    key_func=get_client_ip,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window"
)

# Per-client limits by endpoint category. Voters behind one NAT share an IP,
# so voting stays generous while writes and Wikipedia refreshes do not.
RATE_LIMITS = {
    "vote": "30/minute",
    "poll_read": "120/minute",
    "poll_write": "20/minute",
    "location_refresh": "10/minute",
}
