"""
Template Engine.

Single-pass substitution of ``{{name}}`` variables and
``{{plugin:<name>:<args>}}`` directives. Substituted values are never
rescanned, so a value that itself looks like a placeholder is inserted
literally.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from ..domain.exceptions import UnknownDirectiveError
from .directives import DirectiveResolver

DIRECTIVE_PREFIX = "plugin:"

_PLACEHOLDER = re.compile(
    r"\{\{\s*(plugin:[^{}]*?|[A-Za-z_][A-Za-z0-9_.\-]*)\s*\}\}"
)


@dataclass(frozen=True)
class TemplateContext:
    """Variables and directive resolver for one render.

    Attributes:
        variables: Variable name to substitution value
        directives: Resolver for plugin directives (None = no directives)
    """

    variables: Mapping[str, str] = field(default_factory=dict)
    directives: Optional[DirectiveResolver] = None

    def __post_init__(self):
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))


class TemplateEngine:
    """Renders templates against a TemplateContext.

    Usage:
        engine = TemplateEngine()
        ctx = TemplateContext({"input": "hi"}, DirectiveResolver.default())
        engine.render("Say {{input}} on {{plugin:datetime:today}}", ctx)
    """

    def render(self, template: str, ctx: TemplateContext) -> str:
        """Render a template.

        Unbound variables are left verbatim. Rendering either completes or
        raises; no partially substituted text is ever returned.

        Raises:
            UnknownDirectiveError: If a directive name is not registered
            DirectiveError: If a directive rejects its arguments
        """
        if not template or "{{" not in template:
            return template

        def replace(match: re.Match) -> str:
            token = match.group(1)
            if token.startswith(DIRECTIVE_PREFIX):
                name, _, args = token[len(DIRECTIVE_PREFIX):].partition(":")
                if ctx.directives is None:
                    raise UnknownDirectiveError(name)
                return ctx.directives.resolve(name, args)
            return ctx.variables.get(token, match.group(0))

        return _PLACEHOLDER.sub(replace, template)

    def unresolved(self, text: str) -> list[str]:
        """Return the variable names still present in rendered text."""
        names = []
        for match in _PLACEHOLDER.finditer(text or ""):
            token = match.group(1)
            if not token.startswith(DIRECTIVE_PREFIX) and token not in names:
                names.append(token)
        return names
