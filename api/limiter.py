"""
api/limiter.py -- slowapi rate limiter construction.

create_app() builds one Limiter per application and hands the same instance
to SlowAPIMiddleware (via app.state.limiter) and to build_router(), which
applies the per-route limits. Two apps in one process therefore never share
counters or an on/off switch.

Per-route limits are kept here so the route table and the tests read the
same values.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

REGISTER_LIMIT = "5/minute"
AUTHENTICATE_LIMIT = "10/minute"  # brute-force mitigation


def build_limiter(enabled: bool = True) -> Limiter:
    return Limiter(key_func=get_remote_address, storage_uri="memory://", enabled=enabled)
