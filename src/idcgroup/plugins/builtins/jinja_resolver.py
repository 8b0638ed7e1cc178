"""Built-in template resolver plugin backed by Jinja2."""

from __future__ import annotations

from typing import Any

from idcgroup.plugins.hookspecs import hookimpl
from idcgroup.templates import JinjaTemplateResolver, TemplateResolution, TemplateResolver


class JinjaResolverPlugin:
    """Default ``resolve_params`` implementation, consulted last."""

    def __init__(self, resolver: TemplateResolver | None = None) -> None:
        self._resolver = resolver or JinjaTemplateResolver()

    @hookimpl(trylast=True)
    def resolve_params(self, params: dict[str, Any], scope: dict[str, Any]) -> TemplateResolution:
        return self._resolver.resolve(params, scope)
