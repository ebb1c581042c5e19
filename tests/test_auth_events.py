"""Tests for the auth event hub."""

from __future__ import annotations

from greenspace.core.types import AuthEventType
from greenspace.identity.events import AuthEventHub, event_display_name
from greenspace.identity.models import AuthEvent


def _event(event_type=AuthEventType.SIGNED_IN, user_id="u1", **data) -> AuthEvent:
    return AuthEvent(type=event_type, username="jane@example.org", user_id=user_id, data=data)


class TestAuthEventHub:
    def setup_method(self) -> None:
        self.hub = AuthEventHub(history_size=3)
        self.received: list[AuthEvent] = []

    def test_listener_receives_events(self) -> None:
        self.hub.listen(self.received.append)
        self.hub.publish(_event())
        assert [e.type for e in self.received] == [AuthEventType.SIGNED_IN]

    def test_unsubscribe(self) -> None:
        unsubscribe = self.hub.listen(self.received.append)
        assert self.hub.listener_count == 1
        unsubscribe()
        unsubscribe()
        assert self.hub.listener_count == 0
        self.hub.publish(_event())
        assert self.received == []

    def test_failing_listener_does_not_stop_others(self) -> None:
        def broken(event: AuthEvent) -> None:
            raise RuntimeError("boom")

        self.hub.listen(broken)
        self.hub.listen(self.received.append)
        self.hub.publish(_event())
        assert len(self.received) == 1

    def test_history_is_newest_first_and_bounded(self) -> None:
        for event_type in [
            AuthEventType.SIGN_UP,
            AuthEventType.CONFIRM_SIGN_UP,
            AuthEventType.SIGNED_IN,
            AuthEventType.SIGNED_OUT,
        ]:
            self.hub.publish(_event(event_type))
        recent = self.hub.recent("u1")
        assert [e.type for e in recent] == [
            AuthEventType.SIGNED_OUT,
            AuthEventType.SIGNED_IN,
            AuthEventType.CONFIRM_SIGN_UP,
        ]
        assert len(self.hub.recent("u1", limit=1)) == 1

    def test_history_is_per_user(self) -> None:
        self.hub.publish(_event(user_id="u1"))
        self.hub.publish(_event(user_id="u2"))
        assert len(self.hub.recent("u1")) == 1
        assert self.hub.recent("nobody") == []

    def test_event_without_user_id_keyed_by_username(self) -> None:
        self.hub.publish(_event(user_id=None))
        assert len(self.hub.recent("jane@example.org")) == 1

    def test_forget(self) -> None:
        self.hub.publish(_event())
        self.hub.forget("u1")
        assert self.hub.recent("u1") == []


def test_event_display_names():
    assert event_display_name("signedIn") == "Sign In"
    assert event_display_name("tokenRefresh_failure") == "Token Refresh Failed"
    assert event_display_name("somethingElse") == "somethingElse"
