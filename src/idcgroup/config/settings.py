"""Action settings — init kwargs and environment variables in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — passed by the embedding host or by tests
  2. Env vars     — ``IDCGROUP_*`` prefix
  3. Code defaults

Secret *names* live here; secret *values* only ever come from the
execution context supplied with each invocation.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

DEFAULT_RETRYABLE_CODES: tuple[str, ...] = (
    "ThrottlingException",
    "ServiceUnavailableException",
)


class ActionSettings(BaseSettings):
    """Deployment settings for the group-membership action.

    Attributes:
        access_key_secret: Name of the secret holding the access key ID.
        secret_key_secret: Name of the secret holding the secret access key.
        session_token_secret: Optional secret holding a session token.
        endpoint_url: Override for the Identity Store endpoint (VPC endpoints,
            local emulators).
        retryable_error_codes: Upstream error codes classified as Retryable.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "IDCGROUP_",
        "env_nested_delimiter": "__",
    }

    # --- Secret names ---
    access_key_secret: str = "AWS_ACCESS_KEY_ID"
    secret_key_secret: str = "AWS_SECRET_ACCESS_KEY"
    session_token_secret: str | None = "AWS_SESSION_TOKEN"

    # --- Directory client ---
    endpoint_url: str | None = None
    retryable_error_codes: frozenset[str] = Field(
        default_factory=lambda: frozenset(DEFAULT_RETRYABLE_CODES)
    )

    # --- Behaviour ---
    resolve_templates: bool = True
    load_plugins: bool = True

    # --- Logging ---
    configure_logging: bool = True
    verbose: bool = False
    log_json: bool = False

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Only init kwargs and env vars; no dotenv or secrets directory."""
        return (init_settings, env_settings)

    @classmethod
    def load(cls, **overrides: Any) -> ActionSettings:
        """Construct settings, dropping ``None`` overrides so env vars still apply."""
        return cls(**{k: v for k, v in overrides.items() if v is not None})
