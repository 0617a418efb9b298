"""
Template directives.

A directive is a named function of its raw argument string, embedded in a
template as ``{{plugin:<name>:<args>}}``. Directives never reach for
ambient state: anything they need (clock, environment, host facts) is
handed to them when they are constructed, so resolving the same
directive twice against the same resolver yields the same text.

Built-in directives:
- text: upper, lower, title, trim, length, words, reverse
- datetime: now, today, time, unix, rfc3339, startofday, endofday
- sys: hostname, user, os, arch, home, pwd, env:<VAR>
"""

from __future__ import annotations

import getpass
import logging
import os
import platform
import socket
from abc import ABC, abstractmethod
from datetime import datetime, time, timezone
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional

from ..domain.exceptions import DirectiveError, UnknownDirectiveError

logger = logging.getLogger(__name__)


class Directive(ABC):
    """A named, side-effect free template directive."""

    name: str = ""

    @abstractmethod
    def resolve(self, args: str) -> str:
        """Return the text that replaces the directive placeholder.

        Args:
            args: Raw argument string following ``plugin:<name>:``

        Raises:
            DirectiveError: If the arguments are not understood
        """
        pass

    def _split(self, args: str) -> tuple[str, str]:
        operation, _, value = args.partition(":")
        operation = operation.strip().lower()
        if not operation:
            raise DirectiveError(self.name, f"{self.name} directive requires an operation")
        return operation, value


# ============================================
# Built-in Directives
# ============================================


class TextDirective(Directive):
    """String transformations: ``{{plugin:text:upper:hello}}`` -> ``HELLO``."""

    name = "text"

    _OPERATIONS: dict[str, Callable[[str], str]] = {
        "upper": str.upper,
        "lower": str.lower,
        "title": str.title,
        "trim": str.strip,
        "length": lambda value: str(len(value)),
        "words": lambda value: str(len(value.split())),
        "reverse": lambda value: value[::-1],
    }

    def resolve(self, args: str) -> str:
        operation, value = self._split(args)
        handler = self._OPERATIONS.get(operation)
        if handler is None:
            raise DirectiveError(self.name, f"Unknown text operation: {operation}")
        return handler(value)


class DateTimeDirective(Directive):
    """Current date and time from an injected clock."""

    name = "datetime"

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        """Initialize the directive.

        Args:
            clock: Callable returning the current time (defaults to UTC now)
        """
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def resolve(self, args: str) -> str:
        operation, _ = self._split(args)
        now = self.clock()

        if operation == "now":
            return now.isoformat(timespec="seconds")
        if operation == "today":
            return now.date().isoformat()
        if operation == "time":
            return now.strftime("%H:%M:%S")
        if operation == "unix":
            return str(int(now.timestamp()))
        if operation == "rfc3339":
            return now.isoformat(timespec="seconds").replace("+00:00", "Z")
        if operation == "startofday":
            return datetime.combine(now.date(), time.min, tzinfo=now.tzinfo).isoformat()
        if operation == "endofday":
            return datetime.combine(
                now.date(), time(23, 59, 59), tzinfo=now.tzinfo
            ).isoformat()

        raise DirectiveError(self.name, f"Unknown datetime operation: {operation}")


class SysDirective(Directive):
    """Host facts captured when the directive is built.

    Usage:
        directive = SysDirective.from_host()
        directive.resolve("env:HOME")
    """

    name = "sys"

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        hostname: str = "",
        user: str = "",
        os_name: str = "",
        arch: str = "",
        home: str = "",
        cwd: str = "",
    ):
        self.environ = MappingProxyType(dict(environ or {}))
        self.facts = {
            "hostname": hostname,
            "user": user,
            "os": os_name,
            "arch": arch,
            "home": home,
            "pwd": cwd,
        }

    @classmethod
    def from_host(cls) -> SysDirective:
        """Snapshot the current process environment and host."""
        try:
            user = getpass.getuser()
        except (KeyError, OSError):
            user = os.environ.get("USER", "")
        return cls(
            environ=os.environ,
            hostname=socket.gethostname(),
            user=user,
            os_name=platform.system().lower(),
            arch=platform.machine(),
            home=os.path.expanduser("~"),
            cwd=os.getcwd(),
        )

    def resolve(self, args: str) -> str:
        operation, value = self._split(args)

        if operation == "env":
            variable = value.strip()
            if not variable:
                raise DirectiveError(self.name, "env operation requires a variable name")
            return self.environ.get(variable, "")

        if operation in self.facts:
            return self.facts[operation]

        raise DirectiveError(self.name, f"Unknown sys operation: {operation}")


# ============================================
# Resolver
# ============================================


class DirectiveResolver:
    """Registry mapping directive names to directives.

    Usage:
        resolver = DirectiveResolver.default()
        resolver.resolve("text", "upper:hello")  # "HELLO"
    """

    def __init__(self, directives: Optional[Iterable[Directive]] = None):
        self._directives: dict[str, Directive] = {}
        for directive in directives or ():
            self.register(directive)

    @classmethod
    def default(
        cls,
        clock: Optional[Callable[[], datetime]] = None,
        sys_directive: Optional[SysDirective] = None,
    ) -> DirectiveResolver:
        """Build a resolver with the built-in directives.

        Args:
            clock: Clock for the datetime directive
            sys_directive: Host facts for the sys directive (snapshotted from
                the running process if omitted)
        """
        return cls([
            TextDirective(),
            DateTimeDirective(clock),
            sys_directive or SysDirective.from_host(),
        ])

    def register(self, directive: Directive) -> None:
        """Register a directive, replacing any directive with the same name."""
        if not directive.name:
            raise ValueError("directive name is required")
        self._directives[directive.name.lower()] = directive

    def names(self) -> list[str]:
        return sorted(self._directives)

    def has(self, name: str) -> bool:
        return name.strip().lower() in self._directives

    def resolve(self, name: str, args: str) -> str:
        """Resolve a directive by name.

        Raises:
            UnknownDirectiveError: If no directive is registered under name
            DirectiveError: If the directive rejects its arguments
        """
        directive = self._directives.get(name.strip().lower())
        if directive is None:
            raise UnknownDirectiveError(name)

        logger.debug(f"Resolving directive {name!r} with args {args!r}")
        return directive.resolve(args)
