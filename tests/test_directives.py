"""Unit tests for the built-in template directives and their resolver."""

from datetime import datetime, timedelta, timezone

import pytest

from patternflow.domain.exceptions import DirectiveError, UnknownDirectiveError
from patternflow.templates.directives import (
    DateTimeDirective,
    Directive,
    DirectiveResolver,
    SysDirective,
    TextDirective,
)

from conftest import FIXED_NOW


class TestTextDirective:
    """Tests for string transformations."""

    @pytest.mark.parametrize(
        "args,expected",
        [
            ("upper:hello", "HELLO"),
            ("lower:HeLLo", "hello"),
            ("title:hello world", "Hello World"),
            ("trim:  padded  ", "padded"),
            ("length:hello", "5"),
            ("words:one two  three", "3"),
            ("reverse:abc", "cba"),
        ],
    )
    def test_operations(self, args, expected):
        assert TextDirective().resolve(args) == expected

    def test_value_may_contain_colons(self):
        assert TextDirective().resolve("upper:a:b") == "A:B"

    def test_operation_is_case_insensitive(self):
        assert TextDirective().resolve("UPPER:x") == "X"

    def test_unknown_operation(self):
        with pytest.raises(DirectiveError, match="Unknown text operation"):
            TextDirective().resolve("shout:x")

    def test_missing_operation(self):
        with pytest.raises(DirectiveError):
            TextDirective().resolve("")


class TestDateTimeDirective:
    """Tests for date/time output from an injected clock."""

    @pytest.fixture
    def directive(self):
        return DateTimeDirective(clock=lambda: FIXED_NOW)

    @pytest.mark.parametrize(
        "operation,expected",
        [
            ("now", "2024-03-15T10:30:45+00:00"),
            ("today", "2024-03-15"),
            ("time", "10:30:45"),
            ("unix", str(int(FIXED_NOW.timestamp()))),
            ("rfc3339", "2024-03-15T10:30:45Z"),
            ("startofday", "2024-03-15T00:00:00+00:00"),
            ("endofday", "2024-03-15T23:59:59+00:00"),
        ],
    )
    def test_operations(self, directive, operation, expected):
        assert directive.resolve(operation) == expected

    def test_same_clock_gives_same_output(self, directive):
        assert directive.resolve("now") == directive.resolve("now")

    def test_non_utc_clock_keeps_offset(self):
        tz = timezone(timedelta(hours=2))
        directive = DateTimeDirective(clock=lambda: datetime(2024, 1, 2, 3, 4, 5, tzinfo=tz))
        assert directive.resolve("rfc3339") == "2024-01-02T03:04:05+02:00"

    def test_unknown_operation(self, directive):
        with pytest.raises(DirectiveError):
            directive.resolve("tomorrow")


class TestSysDirective:
    """Tests for host facts and environment lookup."""

    @pytest.mark.parametrize(
        "operation,expected",
        [
            ("hostname", "build-01"),
            ("user", "alice"),
            ("os", "linux"),
            ("arch", "x86_64"),
            ("home", "/home/alice"),
            ("pwd", "/srv/work"),
        ],
    )
    def test_facts(self, sys_directive, operation, expected):
        assert sys_directive.resolve(operation) == expected

    def test_env_lookup(self, sys_directive):
        assert sys_directive.resolve("env:PROJECT") == "patternflow"

    def test_missing_env_variable_is_empty(self, sys_directive):
        assert sys_directive.resolve("env:NOT_SET") == ""

    def test_env_requires_variable_name(self, sys_directive):
        with pytest.raises(DirectiveError):
            sys_directive.resolve("env:")

    def test_environment_is_snapshotted(self):
        environ = {"KEY": "before"}
        directive = SysDirective(environ=environ)
        environ["KEY"] = "after"
        assert directive.resolve("env:KEY") == "before"

    def test_from_host_populates_facts(self, monkeypatch):
        monkeypatch.setenv("PATTERNFLOW_TEST_VAR", "value")
        directive = SysDirective.from_host()
        assert directive.resolve("env:PATTERNFLOW_TEST_VAR") == "value"
        assert directive.resolve("hostname")


class TestDirectiveResolver:
    """Tests for directive registration and lookup."""

    def test_default_registers_builtins(self, directives):
        assert directives.names() == ["datetime", "sys", "text"]

    def test_resolve_is_case_insensitive(self, directives):
        assert directives.resolve("TEXT", "upper:x") == "X"

    def test_unknown_directive(self, directives):
        with pytest.raises(UnknownDirectiveError):
            directives.resolve("weather", "today")

    def test_register_custom_directive(self):
        class Echo(Directive):
            name = "echo"

            def resolve(self, args):
                return args

        resolver = DirectiveResolver()
        resolver.register(Echo())
        assert resolver.has("echo")
        assert resolver.resolve("echo", "a:b") == "a:b"

    def test_register_requires_name(self):
        class Nameless(Directive):
            def resolve(self, args):
                return ""

        with pytest.raises(ValueError):
            DirectiveResolver().register(Nameless())
