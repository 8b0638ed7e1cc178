"""Template resolution of action parameters against job context data.

Parameters may carry ``{{ path.expression }}`` placeholders that the host
expects to be filled from ``context.data`` (for example
``{{ trigger.user.login }}``). Resolution never raises: every failure is
collected so the caller can report all of them at once.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from jinja2 import Environment, StrictUndefined
from jinja2.sandbox import SandboxedEnvironment
from pydantic import BaseModel, Field

TEMPLATE_MARKERS = ("{{", "{%")


class TemplateResolution(BaseModel):
    """``{result, errors}`` output of a template resolver."""

    model_config = {"frozen": True}

    result: dict[str, Any] = Field(default_factory=dict)
    errors: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class TemplateResolver(Protocol):
    def resolve(self, params: Mapping[str, Any], scope: Mapping[str, Any]) -> TemplateResolution: ...


def build_template_environment() -> Environment:
    """Sandboxed Jinja2 environment for single-string rendering with strict undefineds.

    The sandbox refuses access to Python internals such as ``__class__``, so
    only plain path lookups into the scope succeed.
    """
    return SandboxedEnvironment(
        undefined=StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
    )


def has_template(value: Any) -> bool:
    return isinstance(value, str) and any(marker in value for marker in TEMPLATE_MARKERS)


class JinjaTemplateResolver:
    """Render string parameters with Jinja2 against a scope mapping."""

    def __init__(self, env: Environment | None = None) -> None:
        self._env = env or build_template_environment()

    def resolve(self, params: Mapping[str, Any], scope: Mapping[str, Any]) -> TemplateResolution:
        result: dict[str, Any] = {}
        errors: list[str] = []
        for key, value in params.items():
            if not has_template(value):
                result[key] = value
                continue
            try:
                result[key] = self._env.from_string(value).render(dict(scope))
            except Exception as exc:
                errors.append(f"{key}: {getattr(exc, 'message', None) or exc}")
                result[key] = value
        return TemplateResolution(result=result, errors=errors)
