"""Unit tests for expunge.foundation.application.access."""

from __future__ import annotations

import pytest

from expunge.foundation.application.access import (
    authorize_write,
    current_access,
    elevated_access,
)
from expunge.foundation.domain.exceptions import AuthorizationError
from expunge.foundation.domain.records import Record


@pytest.mark.unit
class TestElevatedAccess:
    def test_window_yields_active_token(self) -> None:
        with elevated_access("test") as access:
            assert access.active
            assert current_access() is access
        assert current_access() is None

    def test_token_revoked_on_exit(self) -> None:
        with elevated_access("test") as access:
            pass
        assert not access.active
        with pytest.raises(AuthorizationError):
            access.ensure_active()

    def test_token_revoked_on_error(self) -> None:
        with pytest.raises(RuntimeError), elevated_access("test") as access:
            raise RuntimeError("boom")
        assert not access.active
        assert current_access() is None

    def test_nesting_rejected(self) -> None:
        with elevated_access("outer"), pytest.raises(AuthorizationError, match="already open"):
            with elevated_access("inner"):
                pass

    def test_sequential_windows_allowed(self) -> None:
        with elevated_access("first") as first:
            pass
        with elevated_access("second") as second:
            assert second.active
        assert first.grant_id != second.grant_id


@pytest.mark.unit
class TestAuthorizeWrite:
    def test_wildcard_role_allows_normal_write(self) -> None:
        authorize_write(Record(id="r1", collection="x", write_roles=("*",)), None)

    def test_missing_role_rejected_without_access(self) -> None:
        with pytest.raises(AuthorizationError):
            authorize_write(Record(id="r1", collection="x", write_roles=("user:1",)), None)

    def test_active_token_bypasses_roles(self) -> None:
        with elevated_access("test") as access:
            authorize_write(Record(id="r1", collection="x"), access)

    def test_revoked_token_rejected(self) -> None:
        with elevated_access("test") as access:
            pass
        with pytest.raises(AuthorizationError, match="outside its scope"):
            authorize_write(Record(id="r1", collection="x", write_roles=("*",)), access)
