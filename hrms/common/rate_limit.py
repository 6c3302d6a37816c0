"""Rate limiting configuration using slowapi.

The module-level Limiter is wired into the app in main.py; check-in and
check-out routes tighten it per endpoint.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Default: 60 requests/minute per client IP for all endpoints.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["60/minute"],
)

# Stricter limit for the presence mutations.
PRESENCE_MUTATION_LIMIT = "10/minute"
