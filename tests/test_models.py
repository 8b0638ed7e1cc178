"""Tests for request and result models."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from idcgroup.errors import FatalError
from idcgroup.models import (
    ActionParams,
    ActionResult,
    Credentials,
    ExecutionContext,
    HaltResult,
)


def _params() -> ActionParams:
    return ActionParams(user_name="alice", identity_store_id="d-1", group_id="g-1", region="us-east-1")


class TestActionParams:
    def test_from_raw_trims(self) -> None:
        params = ActionParams.from_raw(
            {"userName": " alice ", "identityStoreId": "d-1", "groupId": "g-1", "region": "us-east-1"}
        )
        assert params.user_name == "alice"

    def test_extra_keys_ignored(self) -> None:
        params = ActionParams.from_raw(
            {
                "userName": "alice",
                "identityStoreId": "d-1",
                "groupId": "g-1",
                "region": "us-east-1",
                "note": "ignored",
            }
        )
        assert params.region == "us-east-1"

    def test_error_detail_names_field(self) -> None:
        with pytest.raises(FatalError) as exc_info:
            ActionParams.from_raw({"userName": "alice", "identityStoreId": " "})
        assert exc_info.value.detail == {"field": "identityStoreId"}


class TestExecutionContext:
    def test_none_is_empty(self) -> None:
        ctx = ExecutionContext(None)
        assert ctx.secrets == {}
        assert ctx.data == {}

    def test_null_secrets(self) -> None:
        assert ExecutionContext({"secrets": None}).secrets == {}

    def test_attribute_context(self) -> None:
        ctx = ExecutionContext(SimpleNamespace(secrets={"AK": "a"}, data={"n": 1}))
        assert ctx.secrets == {"AK": "a"}
        assert ctx.data == {"n": 1}

    def test_malformed_field_fails_only_when_read(self) -> None:
        ctx = ExecutionContext({"secrets": {"AK": "a"}, "data": ["not", "a", "mapping"]})
        assert ctx.secrets == {"AK": "a"}
        with pytest.raises(FatalError) as exc_info:
            _ = ctx.data
        assert exc_info.value.code == "INVALID_CONTEXT"
        assert exc_info.value.detail == {"field": "data"}


class TestCredentials:
    def test_repr_masks_values(self) -> None:
        creds = Credentials.from_secrets(
            {"AK": "AKIAEXAMPLE", "SK": "s3cr3t-value"},
            access_key_name="AK",
            secret_key_name="SK",
        )
        assert "s3cr3t-value" not in repr(creds)
        assert "AKIAEXAMPLE" not in str(creds)

    def test_client_kwargs(self) -> None:
        creds = Credentials.from_secrets(
            {"AK": "AKIAEXAMPLE", "SK": "s3cr3t-value", "TOKEN": "tok"},
            access_key_name="AK",
            secret_key_name="SK",
            session_token_name="TOKEN",
        )
        assert creds.client_kwargs() == {
            "aws_access_key_id": "AKIAEXAMPLE",
            "aws_secret_access_key": "s3cr3t-value",
            "aws_session_token": "tok",
        }

    def test_blank_session_token_dropped(self) -> None:
        creds = Credentials.from_secrets(
            {"AK": "a", "SK": "b", "TOKEN": "  "},
            access_key_name="AK",
            secret_key_name="SK",
            session_token_name="TOKEN",
        )
        assert "aws_session_token" not in creds.client_kwargs()

    def test_non_string_secret_is_missing(self) -> None:
        with pytest.raises(FatalError, match="Missing required AWS credentials"):
            Credentials.from_secrets({"AK": 123, "SK": "b"}, access_key_name="AK", secret_key_name="SK")


class TestActionResult:
    def test_new_membership(self) -> None:
        result = ActionResult.from_membership(
            _params(), user_id="u-1", membership_id="m-1", added_at="2026-01-01T00:00:00.000Z"
        )
        assert result.added is True
        assert result.membership_id == "m-1"

    def test_existing_membership(self) -> None:
        result = ActionResult.from_membership(
            _params(), user_id="u-1", membership_id="existing", added_at="2026-01-01T00:00:00.000Z"
        )
        assert result.added is False
        assert result.as_dict()["membershipId"] == "already-member"

    def test_frozen(self) -> None:
        result = ActionResult.from_membership(
            _params(), user_id="u-1", membership_id="m-1", added_at="2026-01-01T00:00:00.000Z"
        )
        with pytest.raises(Exception):
            result.added = False  # type: ignore[misc]


class TestHaltResult:
    def test_defaults(self) -> None:
        result = HaltResult(halted_at="2026-01-01T00:00:00.000Z")
        assert result.as_dict() == {
            "userName": "unknown",
            "groupId": "unknown",
            "reason": "unknown",
            "haltedAt": "2026-01-01T00:00:00.000Z",
            "cleanupCompleted": True,
        }
