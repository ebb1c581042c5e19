"""Tests for API key issue and validation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from greenspace.auth.api_keys import ApiKeyManager


class TestApiKeyManager:
    def setup_method(self) -> None:
        self.manager = ApiKeyManager(expires_in_days=30)

    def test_issue(self) -> None:
        key = self.manager.issue(description="web")
        assert key.key.startswith("gs-")
        assert key.expires_at - key.created_at == timedelta(days=30)
        assert not key.expired
        assert self.manager.validate(key.key)

    def test_issue_with_fixed_key(self) -> None:
        key = self.manager.issue(key="gs-local-dev")
        assert key.key == "gs-local-dev"
        assert self.manager.validate("gs-local-dev")

    def test_validate_unknown_or_empty(self) -> None:
        assert not self.manager.validate("gs-nope")
        assert not self.manager.validate("")
        assert not self.manager.validate(None)

    def test_expired_key_is_rejected_and_dropped(self) -> None:
        key = self.manager.issue()
        key.expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
        assert key.expired
        assert not self.manager.validate(key.key)
        assert key not in self.manager.list_keys()

    def test_revoke(self) -> None:
        key = self.manager.issue()
        assert self.manager.revoke(key.key)
        assert not self.manager.revoke(key.key)
        assert not self.manager.validate(key.key)

    def test_list_keys(self) -> None:
        self.manager.issue(description="a")
        self.manager.issue(description="b")
        assert sorted(k.description for k in self.manager.list_keys()) == ["a", "b"]
