"""Pluggy hook specifications for idcgroup.

Template resolution is the only extension point. The built-in Jinja2
resolver is registered ``trylast``, so any installed plugin that answers
``resolve_params`` wins.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    from idcgroup.templates import TemplateResolution

PROJECT_NAME = "idcgroup"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class IdcgroupHookSpec:
    """Hook specifications for the idcgroup plugin system."""

    @hookspec(firstresult=True)
    def resolve_params(
        self,
        params: dict[str, Any],
        scope: dict[str, Any],
    ) -> TemplateResolution | None:
        """Substitute template placeholders in *params* using *scope*.

        Return None to defer to the next resolver.
        """
