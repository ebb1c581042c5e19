"""In-process hub for auth events.

Listeners are called synchronously on publish. A bounded history of the
most recent events is kept per user so clients can display them.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from typing import Callable

from greenspace.identity.models import AuthEvent

logger = logging.getLogger(__name__)

Listener = Callable[[AuthEvent], None]


class AuthEventHub:
    def __init__(self, history_size: int = 10) -> None:
        self._listeners: list[Listener] = []
        self._history: dict[str, deque[AuthEvent]] = defaultdict(
            lambda: deque(maxlen=history_size)
        )

    def listen(self, listener: Listener) -> Callable[[], None]:
        """Register a listener and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: AuthEvent) -> None:
        key = event.user_id or event.username
        if key:
            self._history[key].appendleft(event)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Auth event listener failed for %s", event.type)

    def recent(self, key: str, limit: int | None = None) -> list[AuthEvent]:
        """Most recent events for a user id (or bare username), newest first."""
        events = list(self._history.get(key, ()))
        return events[:limit] if limit is not None else events

    def forget(self, key: str) -> None:
        self._history.pop(key, None)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


EVENT_LABELS: dict[str, str] = {
    "signUp": "Sign Up",
    "confirmSignUp": "Confirm Sign Up",
    "signedIn": "Sign In",
    "signedOut": "Sign Out",
    "tokenRefresh": "Token Refresh",
    "tokenRefresh_failure": "Token Refresh Failed",
    "forgotPassword": "Forgot Password",
    "confirmForgotPassword": "Confirm Forgot Password",
    "userAttributesUpdated": "Profile Updated",
    "userDeleted": "User Deleted",
}


def event_display_name(event_type: str) -> str:
    return EVENT_LABELS.get(event_type, event_type)
