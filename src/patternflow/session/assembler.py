"""
Session Assembler.

Encapsulates message list construction:
- Composing the system text from context, pattern and strategy
- Appending the output-language directive
- Rendering system text and user input through the template engine
- Folding everything into one user message in raw mode
- Prepending the history of a loaded session
"""

from __future__ import annotations

import logging
from typing import Optional

from ..domain.entities import ChatRequest, Message, MessageRole, Pattern, Session
from ..templates.directives import DirectiveResolver
from ..templates.engine import TemplateContext, TemplateEngine

logger = logging.getLogger(__name__)

INPUT_VARIABLE = "input"
LANGUAGE_DIRECTIVE = "Please use the language '{language}' for the output."
RAW_MODE_SEPARATOR = "\n\n"


class SessionAssembler:
    """Builds the ordered message list for one request.

    Usage:
        assembler = SessionAssembler(TemplateEngine(), DirectiveResolver.default())

        session = assembler.build(
            request=request,
            pattern=pattern,
            context=context_text,
            strategy=strategy_text,
            prior=loaded_session,
        )
    """

    def __init__(
        self,
        engine: Optional[TemplateEngine] = None,
        directives: Optional[DirectiveResolver] = None,
    ):
        """Initialize the assembler.

        Args:
            engine: Template engine used for rendering
            directives: Resolver for plugin directives in templates
        """
        self.engine = engine or TemplateEngine()
        self.directives = directives

    def compose_system_text(
        self,
        pattern: Optional[Pattern],
        context: Optional[str] = None,
        strategy: Optional[str] = None,
        language: Optional[str] = None,
    ) -> str:
        """Join the non-empty system segments with newlines.

        The language directive always comes last so pattern instructions
        cannot override it.
        """
        segments = [
            context or "",
            pattern.content if pattern else "",
            strategy or "",
        ]
        if language:
            segments.append(LANGUAGE_DIRECTIVE.format(language=language))
        return "\n".join(segment for segment in segments if segment)

    def build(
        self,
        request: ChatRequest,
        pattern: Optional[Pattern],
        context: Optional[str] = None,
        strategy: Optional[str] = None,
        prior: Optional[Session] = None,
        raw: bool = False,
    ) -> Session:
        """Build the session to dispatch for a request.

        Args:
            request: The chat request
            pattern: Resolved pattern, or None for no pattern
            context: Context text to prepend to the system text
            strategy: Strategy text to append to the system text
            prior: Loaded session whose messages precede the new ones
            raw: Force raw mode (vendor or option requirement)

        Returns:
            A new session; prior is not modified

        Raises:
            UnknownDirectiveError: If a template names an unknown directive
            DirectiveError: If a directive rejects its arguments
        """
        system_text = self.compose_system_text(
            pattern, context, strategy, request.language
        )

        variables = dict(request.variables)
        variables[INPUT_VARIABLE] = request.user_input
        ctx = TemplateContext(variables=variables, directives=self.directives)

        rendered_system = self.engine.render(system_text, ctx)
        rendered_user = self.engine.render(request.user_input, ctx)

        unresolved = self.engine.unresolved(rendered_system)
        if unresolved:
            logger.debug(f"System text has unbound variables: {unresolved}")

        if request.raw_mode or raw:
            if rendered_system:
                merged = f"{rendered_system}{RAW_MODE_SEPARATOR}{rendered_user}"
            else:
                merged = rendered_user
            new_messages = [Message(role=MessageRole.USER, content=merged)]
        else:
            new_messages = [
                Message(role=MessageRole.SYSTEM, content=rendered_system),
                Message(role=MessageRole.USER, content=rendered_user),
            ]

        session = prior.copy() if prior is not None else Session(name=request.session_name)
        for message in new_messages:
            session.append(message)

        logger.debug(
            f"Assembled session {session.name or '<anonymous>'} with "
            f"{len(session.messages)} messages (raw={request.raw_mode or raw})"
        )
        return session
