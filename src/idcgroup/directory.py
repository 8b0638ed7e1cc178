"""AWS IAM Identity Store access with error classification.

The directory wraps a boto3 ``identitystore`` client and translates every
``ClientError`` into the action's Retryable/Fatal taxonomy. Transport
failures (``BotoCoreError``) are Fatal for the step that hit them. A membership
that already exists is not an error: it is reported as
:data:`~idcgroup.models.EXISTING_MEMBERSHIP`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from idcgroup.config.settings import DEFAULT_RETRYABLE_CODES
from idcgroup.errors import FatalError, RetryableError
from idcgroup.models import EXISTING_MEMBERSHIP, Credentials

SERVICE_NAME = "identitystore"
USERNAME_ATTRIBUTE = "userName"

NOT_FOUND = "ResourceNotFoundException"
CONFLICT = "ConflictException"

logger = logging.getLogger(__name__)
log = structlog.get_logger(__name__)


def error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


def error_message(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Message") or str(exc)


class IdentityStoreDirectory:
    """Group-membership operations against one Identity Store client.

    Usage::

        directory = IdentityStoreDirectory.connect("us-east-1", credentials)
        user_id = directory.get_user_id("d-1234567890", "alice")
        directory.create_group_membership("d-1234567890", group_id, user_id)
    """

    def __init__(
        self,
        client: Any,
        *,
        retryable_codes: Iterable[str] = DEFAULT_RETRYABLE_CODES,
    ) -> None:
        self._client = client
        self._retryable = frozenset(retryable_codes)

    @classmethod
    def connect(
        cls,
        region: str,
        credentials: Credentials,
        *,
        endpoint_url: str | None = None,
        retryable_codes: Iterable[str] = DEFAULT_RETRYABLE_CODES,
    ) -> IdentityStoreDirectory:
        """Build a region-scoped client. Makes no network call."""
        client = boto3.client(
            SERVICE_NAME,
            region_name=region,
            endpoint_url=endpoint_url,
            **credentials.client_kwargs(),
        )
        logger.debug("Built %s client for region %s", SERVICE_NAME, region)
        return cls(client, retryable_codes=retryable_codes)

    @property
    def client(self) -> Any:
        return self._client

    def _retryable_error(self, exc: ClientError) -> RetryableError | None:
        code = error_code(exc)
        if code not in self._retryable:
            return None
        return RetryableError(
            f"AWS service temporarily unavailable: {error_message(exc)}",
            code="SERVICE_UNAVAILABLE",
            detail={"aws_error_code": code},
        )

    def get_user_id(self, identity_store_id: str, user_name: str) -> str:
        """Resolve *user_name* to its Identity Store user ID.

        Raises:
            FatalError: ``USER_NOT_FOUND`` or ``USER_LOOKUP_FAILED``.
            RetryableError: on throttling or service unavailability.
        """
        try:
            response = self._client.get_user_id(
                IdentityStoreId=identity_store_id,
                AlternateIdentifier={
                    "UniqueAttribute": {
                        "AttributePath": USERNAME_ATTRIBUTE,
                        "AttributeValue": user_name,
                    }
                },
            )
        except ClientError as exc:
            code = error_code(exc)
            if code == NOT_FOUND:
                raise FatalError(
                    f"User not found: {user_name}",
                    code="USER_NOT_FOUND",
                    detail={"user_name": user_name},
                ) from exc
            retryable = self._retryable_error(exc)
            if retryable is not None:
                raise retryable from exc
            raise FatalError(
                f"Failed to get user ID for {user_name}: {error_message(exc)}",
                code="USER_LOOKUP_FAILED",
                detail={"aws_error_code": code},
            ) from exc
        except BotoCoreError as exc:
            raise FatalError(
                f"Failed to get user ID for {user_name}: {exc}",
                code="USER_LOOKUP_FAILED",
                detail={"transport_error": type(exc).__name__},
            ) from exc
        return response["UserId"]

    def create_group_membership(self, identity_store_id: str, group_id: str, user_id: str) -> str:
        """Add *user_id* to *group_id*.

        Returns the new membership ID, or ``EXISTING_MEMBERSHIP`` when the
        user already belongs to the group.

        Raises:
            FatalError: ``GROUP_NOT_FOUND`` or ``MEMBERSHIP_FAILED``.
            RetryableError: on throttling or service unavailability.
        """
        try:
            response = self._client.create_group_membership(
                IdentityStoreId=identity_store_id,
                GroupId=group_id,
                MemberId={"UserId": user_id},
            )
        except ClientError as exc:
            code = error_code(exc)
            if code == CONFLICT:
                log.info("membership.exists", group_id=group_id, user_id=user_id)
                return EXISTING_MEMBERSHIP
            if code == NOT_FOUND:
                raise FatalError(
                    f"Group not found: {group_id}",
                    code="GROUP_NOT_FOUND",
                    detail={"group_id": group_id},
                ) from exc
            retryable = self._retryable_error(exc)
            if retryable is not None:
                raise retryable from exc
            raise FatalError(
                f"Failed to add user to group: {error_message(exc)}",
                code="MEMBERSHIP_FAILED",
                detail={"aws_error_code": code},
            ) from exc
        except BotoCoreError as exc:
            raise FatalError(
                f"Failed to add user to group: {exc}",
                code="MEMBERSHIP_FAILED",
                detail={"transport_error": type(exc).__name__},
            ) from exc
        return response["MembershipId"]
