"""Request and result models exchanged with the host framework.

All pydantic models are frozen. Results serialize with camelCase keys because that
is the shape the host stores in job outputs.
"""

from __future__ import annotations

from collections.abc import Mapping
from functools import cached_property
from typing import Any

from pydantic import BaseModel, ConfigDict, SecretStr, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from idcgroup._helpers import blank
from idcgroup.errors import FatalError

#: Required parameters, in the order they are validated.
REQUIRED_PARAMS: tuple[str, ...] = ("userName", "identityStoreId", "groupId", "region")

#: Returned by the directory when the user is already in the group.
EXISTING_MEMBERSHIP = "existing"
#: Reported to the host in place of a membership ID for existing members.
ALREADY_MEMBER = "already-member"

UNKNOWN = "unknown"

_OPTIONAL_MAPPING: TypeAdapter[dict[str, Any] | None] = TypeAdapter(dict[str, Any] | None)


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def as_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ActionParams(_CamelModel):
    """Validated, trimmed ``invoke`` parameters."""

    user_name: str
    identity_store_id: str
    group_id: str
    region: str

    @classmethod
    def from_raw(cls, params: Mapping[str, Any]) -> ActionParams:
        """Validate *params* field by field, failing on the first bad one.

        Raises:
            FatalError: ``INVALID_PARAMETER`` naming the offending field.
        """
        for name in REQUIRED_PARAMS:
            if blank(params.get(name)):
                raise FatalError(
                    f"Invalid or missing {name} parameter",
                    code="INVALID_PARAMETER",
                    detail={"field": name},
                )
        return cls.model_validate({name: params[name].strip() for name in REQUIRED_PARAMS})


class ExecutionContext:
    """Read-only view over the host-supplied context.

    The host may pass a mapping, an attribute-style object, or None. Each
    field is read and validated only when a step first needs it, so a
    malformed ``data`` cannot fail an invocation that never renders templates.
    """

    def __init__(self, context: Any) -> None:
        self._context = context

    def _field(self, name: str) -> dict[str, Any]:
        context = self._context
        if context is None:
            raw = None
        elif isinstance(context, Mapping):
            raw = context.get(name)
        else:
            raw = getattr(context, name, None)
        try:
            value = _OPTIONAL_MAPPING.validate_python(raw)
        except ValidationError as exc:
            raise FatalError(
                f"Invalid execution context: {name} must be a mapping",
                code="INVALID_CONTEXT",
                detail={"field": name},
            ) from exc
        return value or {}

    @cached_property
    def secrets(self) -> dict[str, Any]:
        return self._field("secrets")

    @cached_property
    def data(self) -> dict[str, Any]:
        """Template scope; empty when the host supplies none."""
        return self._field("data")


class Credentials(BaseModel):
    """Access-key credential pair. Values are masked in ``repr`` and logs."""

    model_config = {"frozen": True}

    access_key_id: SecretStr
    secret_access_key: SecretStr
    session_token: SecretStr | None = None

    @classmethod
    def from_secrets(
        cls,
        secrets: Mapping[str, Any],
        *,
        access_key_name: str,
        secret_key_name: str,
        session_token_name: str | None = None,
    ) -> Credentials:
        """Pick the credential pair out of *secrets*.

        Raises:
            FatalError: ``MISSING_CREDENTIALS`` when either key is absent or blank.
        """
        access_key = secrets.get(access_key_name)
        secret_key = secrets.get(secret_key_name)
        if blank(access_key) or blank(secret_key):
            raise FatalError(
                "Missing required AWS credentials in secrets",
                code="MISSING_CREDENTIALS",
                detail={"expected": [access_key_name, secret_key_name]},
            )
        token = secrets.get(session_token_name) if session_token_name else None
        return cls(
            access_key_id=access_key,
            secret_access_key=secret_key,
            session_token=None if blank(token) else token,
        )

    def client_kwargs(self) -> dict[str, str]:
        """Keyword arguments for ``boto3.client``."""
        kwargs = {
            "aws_access_key_id": self.access_key_id.get_secret_value(),
            "aws_secret_access_key": self.secret_access_key.get_secret_value(),
        }
        if self.session_token is not None:
            kwargs["aws_session_token"] = self.session_token.get_secret_value()
        return kwargs


class ActionResult(_CamelModel):
    """Outcome of a successful ``invoke``.

    Attributes:
        membership_id: Directory membership ID, or ``"already-member"``.
        added: False exactly when the user was already a member.
        added_at: ISO 8601 UTC timestamp.
    """

    user_name: str
    group_id: str
    user_id: str
    membership_id: str
    added: bool
    added_at: str

    @classmethod
    def from_membership(
        cls,
        params: ActionParams,
        *,
        user_id: str,
        membership_id: str,
        added_at: str,
    ) -> ActionResult:
        existing = membership_id == EXISTING_MEMBERSHIP
        return cls(
            user_name=params.user_name,
            group_id=params.group_id,
            user_id=user_id,
            membership_id=ALREADY_MEMBER if existing else membership_id,
            added=not existing,
            added_at=added_at,
        )


class HaltResult(_CamelModel):
    """Report returned from ``halt``. No cleanup is actually required."""

    user_name: str = UNKNOWN
    group_id: str = UNKNOWN
    reason: str = UNKNOWN
    halted_at: str
    cleanup_completed: bool = True
