"""Shared pytest fixtures and test helpers for idcgroup tests."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Coroutine, Generator
from typing import Any, TypeVar

import boto3
import pytest
from botocore.stub import Stubber

from idcgroup.action import GroupMembershipAction, _action_for
from idcgroup.config.settings import ActionSettings
from idcgroup.directory import IdentityStoreDirectory
from idcgroup.models import Credentials

STORE_ID = "d-1234567890"
GROUP_ID = "g-1"
USER_ID = "u-1"
MEMBERSHIP_ID = "m-1"
ARN_PREFIX = f"arn:aws:identitystore::123456789012:identitystore/{STORE_ID}"

T = TypeVar("T")


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Drive an entry-point coroutine to completion."""
    return asyncio.run(coro)


class RecordingFactory:
    """Directory factory that records each construction and hands out one client."""

    def __init__(self, client: Any) -> None:
        self._client = client
        self.calls: list[tuple[str, Credentials]] = []

    def __call__(self, region: str, credentials: Credentials) -> IdentityStoreDirectory:
        self.calls.append((region, credentials))
        return IdentityStoreDirectory(self._client)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host environment settings out of the tests."""
    for key in list(os.environ):
        if key.startswith("IDCGROUP_"):
            monkeypatch.delenv(key)


@pytest.fixture(autouse=True)
def _fresh_action_cache() -> Generator[None]:
    _action_for.cache_clear()
    yield
    _action_for.cache_clear()


@pytest.fixture
def settings() -> ActionSettings:
    return ActionSettings(configure_logging=False, load_plugins=False)


@pytest.fixture
def secrets() -> dict[str, str]:
    return {"AWS_ACCESS_KEY_ID": "AKIAEXAMPLE", "AWS_SECRET_ACCESS_KEY": "s3cr3t-value"}


@pytest.fixture
def context(secrets: dict[str, str]) -> dict[str, Any]:
    return {"secrets": secrets}


@pytest.fixture
def params() -> dict[str, Any]:
    return {
        "userName": "alice",
        "identityStoreId": STORE_ID,
        "groupId": GROUP_ID,
        "region": "us-east-1",
    }


@pytest.fixture
def identitystore_client() -> Any:
    """Real boto3 client; every call must be stubbed."""
    return boto3.client(
        "identitystore",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def stubber(identitystore_client: Any) -> Generator[Stubber]:
    with Stubber(identitystore_client) as stub:
        yield stub


@pytest.fixture
def factory(identitystore_client: Any) -> RecordingFactory:
    return RecordingFactory(identitystore_client)


@pytest.fixture
def action(settings: ActionSettings, factory: RecordingFactory) -> GroupMembershipAction:
    return GroupMembershipAction(settings, directory_factory=factory)


# ---------------------------------------------------------------------------
# Stub helpers
# ---------------------------------------------------------------------------


def _with_arn(
    stub: Stubber, operation: str, response: dict[str, Any], key: str, arn: str
) -> dict[str, Any]:
    """Add *key* when the installed service model declares it in the output shape."""
    shape = stub.client.meta.service_model.operation_model(operation).output_shape
    if key in shape.members:
        response[key] = arn
    return response


def expect_user_lookup(stub: Stubber, user_name: str = "alice", user_id: str = USER_ID) -> None:
    response = _with_arn(
        stub,
        "GetUserId",
        {"UserId": user_id, "IdentityStoreId": STORE_ID},
        "UserArn",
        f"{ARN_PREFIX}/user/{user_id}",
    )
    stub.add_response(
        "get_user_id",
        response,
        {
            "IdentityStoreId": STORE_ID,
            "AlternateIdentifier": {
                "UniqueAttribute": {"AttributePath": "userName", "AttributeValue": user_name}
            },
        },
    )


def expect_membership(
    stub: Stubber, membership_id: str = MEMBERSHIP_ID, user_id: str = USER_ID
) -> None:
    response = _with_arn(
        stub,
        "CreateGroupMembership",
        {"MembershipId": membership_id, "IdentityStoreId": STORE_ID},
        "MembershipArn",
        f"{ARN_PREFIX}/groupmembership/{membership_id}",
    )
    stub.add_response(
        "create_group_membership",
        response,
        {"IdentityStoreId": STORE_ID, "GroupId": GROUP_ID, "MemberId": {"UserId": user_id}},
    )


def expect_error(stub: Stubber, method: str, code: str, message: str = "boom", status: int = 400) -> None:
    stub.add_client_error(
        method,
        service_error_code=code,
        service_message=message,
        http_status_code=status,
    )
