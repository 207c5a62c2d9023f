r"""
psubcommands flag specifications and the Posix-style FlagSet.

Overview
- Specs
  • Flag: named, value-bearing flag with one long name and an optional shorthand
    (e.g., -o/--output), a converter ('type'), a default and optional choices.
  • Switch: named, boolean flag (e.g., -v/--verbose); presence means True and an
    inline boolean literal is accepted (--verbose=false).

- FlagSet
  • Declares specs (option(), switch(), add()), parses an argument list, keeps
    leftover positional arguments, renders usage text, and applies an error
    policy (ErrorHandling) when parsing fails.

Accepted forms (parse)
- long:   --name, --name=value, --name value
- short:  -n value, -nvalue, -n=value, bundled switches -abc, -abn value
- '--' ends flag parsing; '-' alone and non-dashed tokens are positional.
- when 'interspersed' is False, the first positional ends flag parsing.
- repeating a flag overwrites the earlier value.
- -h/--help, when not declared by the caller, runs the usage callback and
  stops parsing (HelpRequested).

Failure policy
- ErrorHandling.CONTINUE_ON_ERROR: render the fault onto 'output', run 'usage',
  then raise the fault (a CommandException subclass) to the caller.
- ErrorHandling.EXIT_ON_ERROR: same rendering, then exit the process with status 2
  (status 0 after an explicit help request).

Metadata (sanitized on construction)
- names: exactly one long name ("--name") and at most one shorthand ("-n").
  Names must match r"--[^\W\d_](-?[^\W_]+)*" (long) or r"-[^\W_]" (short).
- descr: Unset | str (short help); a `backquoted` word becomes the value label.
- deprecated: Unset | str (reason shown when the flag is used; hides it from usage).
- required / hidden: bool.
- Flag only: metavar (Unset | str), type (callable), choices (iterable), default.
- Switch only: default (bool).

Quick example:
    >>> from psubcommands.flags import FlagSet
    >>> flags = FlagSet("tool")
    >>> flags.option("-n", "--name", default="world", descr="who to greet")
    >>> flags.switch("-l", "--loud", descr="shout the greeting")
    >>> flags.parse(["-l", "--name=ada", "extra"])
    >>> flags["name"], flags["loud"], flags.args
    ('ada', True, ['extra'])
"""
import difflib
import functools
import operator
import re
import shlex
import sys
from collections import deque
from collections.abc import Iterable, Set
from enum import IntEnum
from types import MappingProxyType

from .faults import *
from .utils import *


class ErrorHandling(IntEnum):
    """
    Policy applied by FlagSet.parse() once a fault has been rendered.

    - CONTINUE_ON_ERROR: raise the fault so the caller can decide what to do.
    - EXIT_ON_ERROR: terminate the process (status 2, or 0 for a help request).
    """
    CONTINUE_ON_ERROR = 0
    EXIT_ON_ERROR = 1


_BOOLEANS = {
    "1": True, "t": True, "T": True, "TRUE": True, "true": True, "True": True,
    "0": False, "f": False, "F": False, "FALSE": False, "false": False, "False": False,
}


def boolean(text, /):
    """
    Convert a boolean literal (1/t/T/TRUE/true/True and 0/f/F/FALSE/false/False).

    Raises
    - ValueError: for any other text.
    """
    try:
        return _BOOLEANS[text]
    except (KeyError, TypeError):
        raise ValueError(f"invalid boolean literal {text!r}") from None


_TYPENAMES = {
    str: "string",
    int: "int",
    float: "float",
    boolean: "bool",
}


class FlagType(type):
    """
    Metaclass that turns flag specs into introspectable, read-only descriptors.

    Responsibilities
    - Expose the fields listed in __introspectable__ as read-only properties using mirror().
    - Provide stable, readable __repr__/__rich_repr__ implementations for diagnostics.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - switch(names=('-v', '--verbose'), name='verbose', ...)
            """
            fields = ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            return f"{type(self).__typename__}({fields})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate metadata shared by Flag and Switch.

    - descr: Unset | str, non-empty after trimming; Unset becomes None.
    - deprecated: Unset | str, non-empty after trimming; Unset becomes None.

    Raises
    - TypeError: when a field has the wrong type.
    - ValueError: when a string field is empty after trimming.
    """
    for name in ("descr", "deprecated"):
        if not isinstance(object := metadata[name], str | Unset):
            raise TypeError(f"{cls.__typename__} {name!r} must be a string")
        elif isinstance(object, str) and not (object := object.strip()):
            raise ValueError(f"{cls.__typename__} {name!r} cannot be empty")
        metadata[name] = coalesce(object)

    if metadata["required"] and metadata["deprecated"]:
        raise TypeError(f"{cls.__typename__} cannot be both required and deprecated")


def _sanitize_named_metadata(cls, metadata, /):
    r"""
    Internal: validate names and split them into the long name and the shorthand.

    Rules
    - at least one name, all strings, no duplicates;
    - exactly one long name matching r"--[^\W\d_](-?[^\W_]+)*";
    - at most one shorthand matching r"-[^\W_]".

    Mutates
    - metadata["names"]: tuple, shorthand first then long name.
    - metadata["name"]: long name without the leading dashes.
    - metadata["shorthand"]: single character or None.
    """
    longs = []
    shorts = []
    if not metadata["names"]:
        raise TypeError(f"{cls.__typename__} must specify at least one name")

    for name in metadata["names"]:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} names cannot be empty-strings")
        elif name in longs or name in shorts:
            raise ValueError(f"{cls.__typename__} names cannot contain duplicates")
        elif re.fullmatch(r"--[^\W\d_](-?[^\W_]+)*", name):
            longs.append(name)
        elif re.fullmatch(r"-[^\W_]", name):
            shorts.append(name)
        else:
            raise ValueError(f"{cls.__typename__} names must be valid posix-style flag names (e.g., -n or --name)")

    if len(longs) != 1:
        raise ValueError(f"{cls.__typename__} must specify exactly one long name (e.g., --name)")
    if len(shorts) > 1:
        raise ValueError(f"{cls.__typename__} can specify at most one shorthand (e.g., -n)")

    metadata["names"] = (*shorts, *longs)
    metadata["name"] = longs[0][2:]
    metadata["shorthand"] = shorts[0][1:] if shorts else None


def _sanitize_parametric_metadata(cls, metadata, /):
    """
    Internal: validate value-bearing metadata (Flag only).

    - metavar: Unset | str, non-empty after trimming; Unset becomes None.
    - type: callable converter; only callability is enforced.
    - choices: iterable; duplicates rejected unless a Set; normalized to a tuple.
    - metavar and choices are mutually exclusive (help shows one or the other).
    """
    if not isinstance(metavar := metadata["metavar"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
    elif isinstance(metavar, str) and not (metavar := metavar.strip()):
        raise ValueError(f"{cls.__typename__} 'metavar' cannot be empty")
    metadata["metavar"] = coalesce(metavar)

    if not callable(metadata["type"]):
        raise TypeError(f"{cls.__typename__} 'type' must be callable")

    if not isinstance(choices := metadata["choices"], Iterable) or isinstance(choices, str):
        raise TypeError(f"{cls.__typename__} 'choices' must be a non-string iterable")
    if not isinstance(choices, Set):
        sanitized = []
        for choice in choices:
            if choice in sanitized:
                raise ValueError(f"{cls.__typename__} 'choices' cannot contain duplicates")
            sanitized.append(choice)
        choices = sanitized
    metadata["choices"] = tuple(choices)

    if metadata["metavar"] and metadata["choices"]:
        raise TypeError(f"{cls.__typename__} cannot have both 'metavar' and 'choices'")


class Flag(metaclass=FlagType):
    """
    Named, value-bearing flag specification.

    Highlights
    - One long name and an optional shorthand ("-o", "--output").
    - 'type' converts the raw string; a ValueError/TypeError becomes an
      InvalidValueError at parse time.
    - 'choices' restricts converted values.
    - 'default' is any Python value and is not converted.
    """

    __introspectable__ = (
        "names",
        "name",
        "shorthand",
        "metavar",
        "type",
        "default",
        "choices",
        "descr",
        "required",
        "hidden",
        "deprecated",
    )

    def __init__(
            self,
            *names,
            type=str,
            default=None,
            metavar=Unset,
            choices=(),
            descr=Unset,
            required=False,
            hidden=False,
            deprecated=Unset
    ):
        metadata = {
            "names": names,
            "type": type,
            "default": default,
            "metavar": metavar,
            "choices": choices,
            "descr": descr,
            "required": bool(required),
            "hidden": bool(hidden),
            "deprecated": deprecated,
        }
        _sanitize_metadata(__class__, metadata)
        _sanitize_named_metadata(__class__, metadata)
        _sanitize_parametric_metadata(__class__, metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def typename(self):
        """
        Label shown after the flag name in usage text.

        Resolution order: metavar, then {choice|choice}, then the converter's
        well-known name (string/int/float/bool), then its __name__.
        """
        if self.metavar:
            return self.metavar
        if self.choices:
            return "{%s}" % "|".join(map(str, self.choices))
        try:
            return _TYPENAMES[self.type]
        except (KeyError, TypeError):
            pass
        name = getattr(self.type, "__name__", "value")
        return "value" if name.startswith("<") else name

    def convert(self, text, /):
        return self.type(text)

    def __flag__(self):
        """
        Introspection hook: identify this object as a flag spec.
        """
        return self


class Switch(metaclass=FlagType):
    """
    Named, boolean flag specification.

    A Switch carries no separate value token: '--name' / '-n' set it to True
    and an inline literal ('--name=false', '-n=0') sets it explicitly.
    """

    __introspectable__ = (
        "names",
        "name",
        "shorthand",
        "default",
        "descr",
        "required",
        "hidden",
        "deprecated",
    )

    def __init__(
            self,
            *names,
            default=False,
            descr=Unset,
            required=False,
            hidden=False,
            deprecated=Unset
    ):
        if not isinstance(default, bool):
            raise TypeError(f"{type(self).__typename__} 'default' must be a boolean")
        metadata = {
            "names": names,
            "default": default,
            "descr": descr,
            "required": bool(required),
            "hidden": bool(hidden),
            "deprecated": deprecated,
        }
        _sanitize_metadata(__class__, metadata)
        _sanitize_named_metadata(__class__, metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    type = property(lambda self: boolean, doc="Converter applied to inline literals.")
    typename = property(lambda self: "", doc="Switches show no value label in usage text.")
    choices = property(lambda self: ())

    def convert(self, text, /):
        return boolean(text)

    def __flag__(self):
        return self


def _zero(value):
    """
    Internal: whether a default is a "zero" value that usage text leaves out.
    """
    if value is None or value is False:
        return True
    if isinstance(value, (int, float, str, bytes, tuple, list, dict, set, frozenset)):
        return not value
    return False


def _unquote(descr):
    """
    Internal: extract a `backquoted` value label from a description.

    Returns (label, descr-without-backquotes); label is "" when none is found.
    """
    if not descr or not (match := re.search(r"`([^`]+)`", descr)):
        return "", descr or ""
    return match[1], descr[:match.start()] + match[1] + descr[match.end():]


class FlagSet:
    """
    An ordered collection of flag specs plus the state of one parse.

    Responsibilities
    - Declaration: option(), switch(), add(); redefinitions are rejected.
    - Parsing: parse() consumes flags, records values and leftover positionals.
    - Queries: parsed, args, nargs, arg(i), lookup(), changed(), get()/[], set(),
      namespace, nflag, visit(), visit_all().
    - Rendering: flag_usages(), print_defaults(), and an overridable 'usage'
      callback (assign any no-argument callable to flags.usage).

    Parameters
    - name: str, used in the default usage header and in fault headers.
    - error_handling: ErrorHandling policy applied after a fault is rendered.
    - output: writable text sink for usage text and faults (sys.stdout when Unset,
      resolved at write time).
    - interspersed: allow flags after positional arguments.
    - sort_flags: render usage text sorted by long name (declaration order otherwise).
    """

    def __init__(
            self,
            name,
            error_handling=ErrorHandling.CONTINUE_ON_ERROR,
            /,
            *,
            output=Unset,
            interspersed=True,
            sort_flags=True
    ):
        if not isinstance(name, str):
            raise TypeError("flag-set 'name' must be a string")
        self._name = name
        self._error_handling = ErrorHandling(error_handling)
        self._output = output
        self.interspersed = bool(interspersed)
        self.sort_flags = bool(sort_flags)
        self.usage = self._default_usage

        self._formal = {}
        self._shorthands = {}
        self._values = {}
        self._actual = {}
        self._args = []
        self._parsed = False
        self._index = 0

    def __repr__(self):
        return "flag-set(name=%r, flags=%r, parsed=%r)" % (self._name, tuple(self._formal), self._parsed)

    @property
    def name(self):
        return self._name

    @property
    def error_handling(self):
        return self._error_handling

    @property
    def output(self):
        return coalesce(self._output, sys.stdout)

    @output.setter
    def output(self, output):
        self._output = output

    # ── Declaration ─────────────────────────────────────────────────────────

    def add(self, spec, /):
        """
        Add a pre-built spec (anything implementing __flag__) to this set.

        The spec's default becomes the current value. Raises ValueError when the
        long name or the shorthand is already defined in this set.
        """
        if not hasattr(spec, "__flag__") or not callable(spec.__flag__):
            raise TypeError("add() argument must be a flag or a switch")
        if not isinstance(spec := spec.__flag__(), Flag | Switch):
            raise TypeError("__flag__() non-flag returned")

        if spec.name in self._formal:
            raise ValueError(f"flag-set {self._name!r} flag '--{spec.name}' is already in use")
        if spec.shorthand and spec.shorthand in self._shorthands:
            raise ValueError(
                f"flag-set {self._name!r} shorthand '-{spec.shorthand}' is already in use "
                f"by '--{self._shorthands[spec.shorthand].name}'"
            )

        self._formal[spec.name] = spec
        if spec.shorthand:
            self._shorthands[spec.shorthand] = spec
        self._values[spec.name] = spec.default
        return spec

    def option(self, *names, **options):
        """
        Declare a value-bearing flag; see Flag for the accepted options.
        """
        return self.add(Flag(*names, **options))

    def switch(self, *names, **options):
        """
        Declare a boolean flag; see Switch for the accepted options.
        """
        return self.add(Switch(*names, **options))

    # ── Queries ─────────────────────────────────────────────────────────────

    @property
    def parsed(self):
        return self._parsed

    @property
    def args(self):
        """Positional arguments left over after flags were consumed."""
        return list(self._args)

    @property
    def nargs(self):
        return len(self._args)

    def arg(self, index, /):
        """
        Return the index-th leftover positional argument, or "" when out of range.
        """
        if not 0 <= index < len(self._args):
            return ""
        return self._args[index]

    def lookup(self, name, /):
        """
        Return the spec declared under name ('name', '--name' or '-n'), or None.
        """
        if name.startswith("--"):
            return self._formal.get(name[2:])
        if name.startswith("-"):
            return self._shorthands.get(name[1:])
        return self._formal.get(name)

    def changed(self, name, /):
        """Whether the flag was set during parse() or through set()."""
        return (spec := self.lookup(name)) is not None and spec.name in self._actual

    def get(self, name, /):
        if (spec := self.lookup(name)) is None:
            raise KeyError(name)
        return self._values[spec.name]

    def __getitem__(self, name):
        return self.get(name)

    def __contains__(self, name):
        return self.lookup(name) is not None

    def set(self, name, text, /):
        """
        Set a flag from its raw string form, as if given on the command line.

        Raises
        - KeyError: undeclared flag.
        - ValueError: conversion failure or value outside the declared choices.
        """
        if (spec := self.lookup(name)) is None:
            raise KeyError(name)
        try:
            value = spec.convert(text)
        except (TypeError, ValueError) as exception:
            raise ValueError(f"invalid argument {text!r} for '--{spec.name}' flag: {exception}") from None
        if spec.choices and value not in spec.choices:
            raise ValueError(f"invalid argument {text!r} for '--{spec.name}' flag: not one of the choices")
        self._values[spec.name] = value
        self._actual[spec.name] = spec

    @property
    def namespace(self):
        """Read-only mapping of long name -> current value."""
        return MappingProxyType(dict(self._values))

    @property
    def nflag(self):
        """Number of flags that were set."""
        return len(self._actual)

    def _ordered(self, specs):
        specs = list(specs)
        return sorted(specs, key=lambda spec: spec.name) if self.sort_flags else specs

    def visit(self, callback, /):
        """Call callback(spec) for every flag that was set."""
        for spec in self._ordered(self._actual.values()):
            callback(spec)

    def visit_all(self, callback, /):
        """Call callback(spec) for every declared flag, set or not."""
        for spec in self._ordered(self._formal.values()):
            callback(spec)

    # ── Rendering ───────────────────────────────────────────────────────────

    def flag_usages(self):
        """
        Render declared flags as aligned usage lines.

        Layout (one line per visible flag)
            "  -n, --name string   descr (default "x")"
            "      --long int      descr"

        Hidden and deprecated flags are skipped; zero defaults are omitted;
        string defaults are double-quoted; required flags end with "(required)".
        """
        rows = []
        for spec in self._ordered(self._formal.values()):
            if spec.hidden or spec.deprecated:
                continue
            if spec.shorthand:
                head = "  -%s, --%s" % (spec.shorthand, spec.name)
            else:
                head = "      --%s" % spec.name

            label, descr = _unquote(spec.descr)
            if label := label or spec.typename:
                head += " " + label

            if not _zero(spec.default) and not isinstance(spec, Switch):
                if isinstance(spec.default, str):
                    descr += ' (default "%s")' % spec.default
                else:
                    descr += " (default %s)" % (spec.default,)
            elif isinstance(spec, Switch) and spec.default:
                descr += " (default true)"
            if spec.required:
                descr += " (required)"
            rows.append((head, descr.strip()))

        if not rows:
            return ""
        width = max(len(head) for head, _ in rows) + 3
        return "".join(f"{head.ljust(width)}{descr}".rstrip() + "\n" for head, descr in rows)

    def print_defaults(self):
        self.output.write(self.flag_usages())

    def _default_usage(self):
        self.output.write("Usage of %s:\n" % self._name if self._name else "Usage:\n")
        self.print_defaults()

    # ── Parsing ─────────────────────────────────────────────────────────────

    def _fail(self, fault, /):
        """
        Surface a parse fault according to the error policy.

        Renders onto output, runs the usage callback, then raises (continue-on-error)
        or exits with status 2 (exit-on-error). Never returns normally.
        """
        trigger(
            fault,
            prog=self._name,
            output=self.output,
            usage=self.usage,
            exit=self._error_handling is ErrorHandling.EXIT_ON_ERROR,
        )

    def _help(self):
        """
        Handle an undeclared -h/--help: run the usage callback, then stop.
        """
        trigger(
            HelpRequested("help requested", code=FaultCode.HELP_REQUESTED),
            prog=self._name,
            usage=self.usage,
            exit=self._error_handling is ErrorHandling.EXIT_ON_ERROR,
        )

    def _unknown(self, input, candidates):
        suggestions = difflib.get_close_matches(input, candidates, 3)
        try:
            hint = "did you mean %r? you can also run '%s --help' to see all flags" % (suggestions[0], self._name)
        except IndexError:
            hint = "run '%s --help' to see all flags" % self._name
        return self._fail(UnknownFlagError(
            "unknown flag %r at %s position" % (input, ordinal(self._index)),
            title="unknown flag",
            code=FaultCode.UNKNOWN_FLAG,
            input=input,
            index=self._index,
            suggestions=suggestions,
            hint=hint,
        ))

    def _missing(self, spec, input):
        return self._fail(MissingValueError(
            "flag %r at %s position needs an argument" % (input, ordinal(self._index)),
            title="missing value",
            code=FaultCode.MISSING_VALUE,
            input=input,
            index=self._index,
            argument=spec,
            hint="pass a value inline (%s=<%s>) or after a space" % (input, spec.typename or "value"),
        ))

    def _assign(self, spec, input, text, index):
        """
        Convert and store one value, with position-first messages on failure.
        """
        try:
            value = spec.convert(text)
        except (TypeError, ValueError) as exception:
            return self._fail(InvalidValueError(
                "invalid argument %r for flag %r at %s position" % (text, input, ordinal(index)),
                title="invalid value",
                code=FaultCode.INVALID_VALUE,
                input=input,
                index=index,
                argument=spec,
                exception=exception,
                hint="expected a %s value (%s)" % (spec.typename or "bool", exception),
            ))

        if spec.choices and value not in spec.choices:
            return self._fail(InvalidChoiceError(
                "invalid choice %r for flag %r at %s position" % (text, input, ordinal(index)),
                title="invalid choice",
                code=FaultCode.INVALID_CHOICE,
                input=input,
                index=index,
                argument=spec,
                hint="choose one of: %s" % ", ".join(map(str, spec.choices)),
            ))

        self._values[spec.name] = value
        self._actual[spec.name] = spec

        if spec.deprecated:
            trigger(DeprecatedFlagWarning(
                "flag %r at %s position has been deprecated" % (input, ordinal(index)),
                title="deprecated flag",
                code=FaultCode.DEPRECATED_FLAG,
                input=input,
                index=index,
                argument=spec,
                hint=spec.deprecated,
            ), prog=self._name, output=self.output)

    def _parse_long(self, token, tokens):
        """
        Parse '--name', '--name=value' or '--name value'.
        """
        match = re.fullmatch(r"--(?P<input>[^\W\d_](-?[^\W_]+)*)(=(?P<value>.*))?", token, re.DOTALL)
        if not match:
            return self._fail(MalformedFlagError(
                "bad flag syntax %r at %s position" % (token, ordinal(self._index)),
                title="malformed flag",
                code=FaultCode.MALFORMED_FLAG,
                token=token,
                index=self._index,
                hint="flags look like --name, --name=value or -n (run '%s --help')" % self._name,
            ))

        input = "--" + match["input"]
        value = match["value"]  # None without '=', '' with an empty inline value

        if (spec := self._formal.get(match["input"])) is None:
            if match["input"] == "help":
                return self._help()
            return self._unknown(input, ["--" + name for name in self._formal])

        index = self._index
        if value is None:
            if isinstance(spec, Switch):
                value = "true"
            elif tokens:
                value = tokens.popleft()
                self._index += 1
            else:
                return self._missing(spec, input)
        self._assign(spec, input, value, index)

    def _parse_short(self, token, tokens):
        """
        Parse a shorthand bundle: '-v', '-abc', '-nvalue', '-n=value', '-n value'.
        """
        shorthands = token[1:]
        index = self._index
        while shorthands:
            char, rest = shorthands[0], shorthands[1:]
            input = "-" + char

            if (spec := self._shorthands.get(char)) is None:
                if char == "h":
                    return self._help()
                return self._unknown(input, ["-" + name for name in self._shorthands])

            if rest.startswith("="):
                value, shorthands = rest[1:], ""
            elif isinstance(spec, Switch):
                value, shorthands = "true", rest
            elif rest:
                value, shorthands = rest, ""
            elif tokens:
                value, shorthands = tokens.popleft(), ""
                self._index += 1
            else:
                return self._missing(spec, input)
            self._assign(spec, input, value, index)

    def parse(self, arguments, /):
        """
        Parse an argument list (flags first or interspersed, see 'interspersed').

        Parameters
        - arguments: Iterable[str], or a shell-like str split with shlex.split.

        Behavior
        - Marks the set as parsed before consuming any token.
        - Leftover positionals are available through args/nargs/arg(i).
        - After the loop, required flags that were not set are reported together.

        Raises
        - TypeError: when arguments is not a string or an iterable of strings.
        - CommandException subclasses (continue-on-error) or SystemExit (exit-on-error).
        """
        if isinstance(arguments, str):
            tokens = deque(shlex.split(arguments))
        elif isinstance(arguments, Iterable):
            tokens = deque(arguments)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("parse() argument must be a string or an iterable of strings")
        else:
            raise TypeError("parse() argument must be a string or an iterable of strings")

        self._parsed = True
        self._args = []
        self._index = 0

        while tokens:
            token = tokens.popleft()
            self._index += 1

            if len(token) < 2 or not token.startswith("-"):
                self._args.append(token)
                if not self.interspersed:
                    self._args.extend(tokens)
                    tokens.clear()
                continue

            if token == "--":
                self._args.extend(tokens)
                tokens.clear()
            elif token.startswith("--"):
                self._parse_long(token, tokens)
            else:
                self._parse_short(token, tokens)

        if missing := [spec for spec in self._formal.values() if spec.required and spec.name not in self._actual]:
            names = ", ".join("'--%s'" % spec.name for spec in missing)
            self._fail(MissingRequiredFlagError(
                "required flag(s) %s not set" % names,
                title="missing required flag",
                code=FaultCode.MISSING_REQUIRED_FLAG,
                missing=tuple(spec.name for spec in missing),
                hint="add %s; run '%s --help' to see the expected usage" % (names, self._name),
            ))


__all__ = (
    "ErrorHandling",
    "Flag",
    "Switch",
    "FlagSet",
    "boolean",
)
