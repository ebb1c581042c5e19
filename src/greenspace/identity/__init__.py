"""Identity service for Green Space Tracker.

Email-based sign-up with code confirmation, token sessions, user
attribute management and an auth event hub.
"""

from greenspace.identity.account import AccountService, SignUpForm
from greenspace.identity.events import AuthEventHub
from greenspace.identity.provider import IdentityProvider, LocalIdentityProvider

__all__ = [
    "AccountService",
    "AuthEventHub",
    "IdentityProvider",
    "LocalIdentityProvider",
    "SignUpForm",
]
