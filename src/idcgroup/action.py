"""GroupMembershipAction — add a directory user to a group for the host framework.

The host drives three entry points:

- ``invoke``: resolve the user by username and create the group membership.
- ``error``: observe a failed ``invoke`` and re-raise it unchanged.
- ``halt``: report a forced termination. Nothing needs rolling back.

INVARIANT: ``invoke`` only ever raises :class:`~idcgroup.errors.ActionError`.
INVARIANT: Parameters are validated before any network call.
INVARIANT: ``halt`` never raises.
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Callable, Mapping
from typing import Any, NoReturn

import structlog

from idcgroup._helpers import now_iso
from idcgroup.config.logging import configure_logging
from idcgroup.config.settings import ActionSettings
from idcgroup.directory import IdentityStoreDirectory
from idcgroup.errors import ActionError, FatalError, is_retryable
from idcgroup.models import (
    UNKNOWN,
    ActionParams,
    ActionResult,
    Credentials,
    ExecutionContext,
    HaltResult,
)
from idcgroup.plugins.manager import PluginManager

log = structlog.get_logger(__name__)

DirectoryFactory = Callable[[str, Credentials], IdentityStoreDirectory]


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _text_or_unknown(value: Any) -> str:
    if not value:
        return UNKNOWN
    return value if isinstance(value, str) else str(value)


class GroupMembershipAction:
    """Stateless handler for one job step.

    Settings and plugins are resolved lazily so that ``error`` and ``halt``
    never depend on configuration being valid.

    Usage::

        action = GroupMembershipAction.from_settings()
        result = await action.invoke(params, context)
    """

    def __init__(
        self,
        settings: ActionSettings | None = None,
        *,
        plugins: PluginManager | None = None,
        directory_factory: DirectoryFactory | None = None,
    ) -> None:
        self._settings = settings
        self._plugins = plugins
        self._directory_factory = directory_factory

    @classmethod
    def from_settings(cls, settings: ActionSettings | None = None) -> GroupMembershipAction:
        """Build an action with logging configured and plugins discovered."""
        settings = settings or ActionSettings.load()
        if settings.configure_logging:
            configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        plugins = PluginManager()
        if settings.load_plugins and settings.resolve_templates:
            plugins.discover_and_load()
        return cls(settings, plugins=plugins)

    @property
    def settings(self) -> ActionSettings:
        if self._settings is None:
            self._settings = ActionSettings.load()
        return self._settings

    @property
    def plugins(self) -> PluginManager:
        if self._plugins is None:
            self._plugins = PluginManager()
        return self._plugins

    def _connect(self, region: str, credentials: Credentials) -> IdentityStoreDirectory:
        if self._directory_factory is not None:
            return self._directory_factory(region, credentials)
        return IdentityStoreDirectory.connect(
            region,
            credentials,
            endpoint_url=self.settings.endpoint_url,
            retryable_codes=self.settings.retryable_error_codes,
        )

    # ------------------------------------------------------------------
    # invoke
    # ------------------------------------------------------------------

    async def invoke(self, params: Mapping[str, Any] | None, context: Any) -> dict[str, Any]:
        """Add the user named in *params* to the group named in *params*.

        Returns the :class:`~idcgroup.models.ActionResult` as a camelCase dict.

        Raises:
            RetryableError: Throttling or service unavailability upstream.
            FatalError: Everything else, including unclassified failures.
        """
        log.info("invoke.start")
        try:
            result = await self._invoke(_as_mapping(params), ExecutionContext(context))
        except ActionError as exc:
            log.error(
                "invoke.failed",
                error=exc.message,
                code=exc.code,
                retryable=exc.retryable,
            )
            raise
        except Exception as exc:
            log.error("invoke.failed", error=str(exc), code="UNEXPECTED_ERROR")
            raise FatalError(f"Unexpected error: {exc}", code="UNEXPECTED_ERROR") from exc
        return result.as_dict()

    async def _invoke(self, params: Mapping[str, Any], context: ExecutionContext) -> ActionResult:
        raw = dict(params)
        if self.settings.resolve_templates:
            raw = self._resolve_templates(raw, context.data)

        request = ActionParams.from_raw(raw)
        step_log = log.bind(user_name=request.user_name, group_id=request.group_id)
        step_log.info("membership.processing")

        credentials = Credentials.from_secrets(
            context.secrets,
            access_key_name=self.settings.access_key_secret,
            secret_key_name=self.settings.secret_key_secret,
            session_token_name=self.settings.session_token_secret,
        )
        directory = self._connect(request.region, credentials)

        step_log.info("user.resolving", identity_store_id=request.identity_store_id)
        user_id = await asyncio.to_thread(
            directory.get_user_id, request.identity_store_id, request.user_name
        )
        step_log.info("user.resolved", user_id=user_id)

        step_log.info("membership.creating", user_id=user_id)
        membership_id = await asyncio.to_thread(
            directory.create_group_membership,
            request.identity_store_id,
            request.group_id,
            user_id,
        )

        result = ActionResult.from_membership(
            request,
            user_id=user_id,
            membership_id=membership_id,
            added_at=now_iso(),
        )
        if result.added:
            step_log.info("membership.added", membership_id=result.membership_id)
        else:
            step_log.info("membership.already_member")
        return result

    def _resolve_templates(self, params: dict[str, Any], scope: dict[str, Any]) -> dict[str, Any]:
        resolution = self.plugins.resolve_params(params, scope)
        if resolution.errors:
            raise FatalError(
                f"Template resolution failed: {'; '.join(resolution.errors)}",
                code="TEMPLATE_ERROR",
                detail={"errors": list(resolution.errors)},
            )
        return dict(resolution.result)

    # ------------------------------------------------------------------
    # error / halt
    # ------------------------------------------------------------------

    async def error(self, params: Mapping[str, Any] | None, context: Any = None) -> NoReturn:
        """Log the error from a failed ``invoke`` and re-raise it unchanged."""
        exc = _as_mapping(params).get("error")
        if not isinstance(exc, BaseException):
            log.error("error_hook.invoked", error=None, received=type(exc).__name__)
            raise FatalError("Error handler invoked without an error", code="UNEXPECTED_ERROR")

        log.error(
            "error_hook.invoked",
            error=str(exc),
            code=getattr(exc, "code", None),
            retryable=is_retryable(exc),
        )
        raise exc

    async def halt(self, params: Mapping[str, Any] | None, context: Any = None) -> dict[str, Any]:
        """Report that the job is being halted. There is nothing to clean up."""
        values = _as_mapping(params)
        result = HaltResult(
            user_name=_text_or_unknown(values.get("userName")),
            group_id=_text_or_unknown(values.get("groupId")),
            reason=_text_or_unknown(values.get("reason")),
            halted_at=now_iso(),
        )
        log.info("halt", reason=result.reason, user_name=result.user_name, group_id=result.group_id)
        return result.as_dict()


# ----------------------------------------------------------------------
# Host entry points
# ----------------------------------------------------------------------


@functools.cache
def _action_for(settings: ActionSettings) -> GroupMembershipAction:
    """One configured action per distinct settings value, reused across invocations."""
    return GroupMembershipAction.from_settings(settings)


async def invoke(params: Mapping[str, Any] | None, context: Any) -> dict[str, Any]:
    """Host entry point: run the action with settings from the environment."""
    try:
        action = _action_for(ActionSettings.load())
    except Exception as exc:
        raise FatalError(f"Unexpected error: {exc}", code="UNEXPECTED_ERROR") from exc
    return await action.invoke(params, context)


async def error(params: Mapping[str, Any] | None, context: Any = None) -> NoReturn:
    """Host entry point: observe and re-raise a failed invocation's error."""
    await GroupMembershipAction().error(params, context)


async def halt(params: Mapping[str, Any] | None, context: Any = None) -> dict[str, Any]:
    """Host entry point: report a forced termination."""
    return await GroupMembershipAction().halt(params, context)
