"""Template rendering and plugin directives."""

from .directives import (
    DateTimeDirective,
    Directive,
    DirectiveResolver,
    SysDirective,
    TextDirective,
)
from .engine import TemplateContext, TemplateEngine

__all__ = [
    "DateTimeDirective",
    "Directive",
    "DirectiveResolver",
    "SysDirective",
    "TemplateContext",
    "TemplateEngine",
    "TextDirective",
]
