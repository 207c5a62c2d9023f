"""
psubcommands faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue
  raised while parsing flags or running a subcommand.
- CommandException / CommandWarning: base types that carry message + options and
  know how to render themselves in a friendly, lowercased, and actionable way.
- trigger(): central entry point to surface any fault with runtime options.

UX goals
- Position-first messages: flag faults include the ordinal position of the
  offending token (“at third position”) so users can learn by trying.
- Short titles, one-sentence bodies, a single clear hint.

Integration
- FlagSet builds a fault while parsing and calls trigger(fault, output=..., usage=..., exit=...).
  The fault is rendered with rich onto the flag set's output, the usage callback
  runs, then the fault is raised (continue-on-error) or the process exits with
  status 2 (exit-on-error).
- Commander surfaces exceptions escaping a subcommand as DelegatedCommandError,
  rendered but never raised (propagate=False).

Configuration (host application, via __main__)
- __styles__: overrides for the style palette below.
- __codes__: mapping FaultCode -> display label (see FaultCode.normalize).
- __prog__: program label used in fault headers.
"""
import inspect
import sys
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.text import Text

from .utils import Unset, coalesce


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping (by high-level domain)
    - requests (11100)
      • HELP_REQUESTED (not a fault: -h/--help was given and usage was shown)
    - flags (1111x/1112x)
      • MALFORMED_FLAG, UNKNOWN_FLAG, MISSING_VALUE, INVALID_VALUE,
        INVALID_CHOICE, MISSING_REQUIRED_FLAG
    - delegated errors (11131)
      • DELEGATED_ERROR
    - warnings (12xxx)
      • DEPRECATED_FLAG

    spacing leaves room for future additions without reshuffling existing codes.
    """
    # --- requests (11xxx) ---
    HELP_REQUESTED              = 11100

    # --- flag errors (11xxx) ---
    MALFORMED_FLAG              = 11111
    UNKNOWN_FLAG                = 11112
    MISSING_VALUE               = 11117
    INVALID_VALUE               = 11123
    INVALID_CHOICE              = 11124
    MISSING_REQUIRED_FLAG       = 11125

    # --- delegated errors (11xxx) ---
    DELEGATED_ERROR             = 11131

    # --- warnings (12xxx) ---
    DEPRECATED_FLAG             = 12112

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette, kind):
    """
    Build the rich renderable shared by exceptions and warnings.

    Layout
        [ <prog> — <code> | <Title> ]
        <message>
         → <hint>
    """
    main = __import__("__main__")
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style])

    prog = getattr(main, "__prog__", fault.options.get("prog", ""))
    code = fault.options.get("code")

    header = Text.assemble(
        "[ ",
        text(prog, "prog-name"),
        " — ",
        text(code.normalize() if isinstance(code, FaultCode) else "", "code"),
        " | ",
        text(str(fault.options.get("title", "")).title(), f"{kind}-title"),
        " ]"
    )
    message = text(coalesce(fault.message, ""), f"{kind}-message")

    if not (hint := fault.options.get("hint")):
        return Group(header, message)
    return Group(header, message, Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))


class CommandException(Exception):
    """
    Base class for every error surfaced to the command-line user.

    Options (all optional, merged through __replace__)
    - prog, code, title, hint: header and body content.
    - output: writable text sink the fault is rendered onto (stdout when missing).
    - usage: no-argument callable invoked right after rendering.
    - exit: terminate the process with status 2 instead of raising.
    - propagate: raise after rendering (default True); False only renders.
    - any other context (input, index, argument, exception) for callers.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        }, "error")

    def __trigger__(self) -> None:
        Console(file=self.options.get("output", sys.stdout)).print(self)
        if callable(usage := self.options.get("usage")):
            usage()
        if self.options.get("exit", False):
            sys.exit(2)
        if self.options.get("propagate", True):
            raise self from None

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class MalformedFlagError(CommandException): ...
class UnknownFlagError(CommandException): ...
class MissingValueError(CommandException): ...
class InvalidValueError(CommandException): ...
class InvalidChoiceError(CommandException): ...
class MissingRequiredFlagError(CommandException): ...
class DelegatedCommandError(CommandException): ...


class HelpRequested(CommandException):
    """
    Raised by a continue-on-error FlagSet after an undeclared -h/--help ran the usage callback.

    Carries no diagnostic of its own; usage text already explains everything.
    """

    def __trigger__(self) -> None:
        if callable(usage := self.options.get("usage")):
            usage()
        if self.options.get("exit", False):
            sys.exit(0)
        raise self from None


class CommandWarning(ABC, Warning):
    """
    Base class for non-fatal notices (rendered, never raised while parsing).

    Without an output option the warning goes through the stdlib warnings
    machinery instead, so library callers can filter or escalate it.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "warning-title": "bold #FFC2E0",  # softer pinky title for warnings

            # body
            "warning-message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
        }, "warning")

    def __trigger__(self) -> None:
        if "output" not in self.options:
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        Console(file=self.options["output"]).print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DeprecatedFlagWarning(CommandWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - exceptions render, run the usage callback, then raise or exit; warnings only render.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


__all__ = (
    "CommandException",
    "MalformedFlagError",
    "UnknownFlagError",
    "MissingValueError",
    "InvalidValueError",
    "InvalidChoiceError",
    "MissingRequiredFlagError",
    "DelegatedCommandError",
    "HelpRequested",
    "CommandWarning",
    "DeprecatedFlagWarning",
    "FaultCode",
    "trigger",
)
