"""
psubcommands command layer: register, resolve, and run subcommands.

What this module provides
- ExitStatus: the three Posix exit statuses a run can end with.
- Command: the contract every subcommand satisfies (name, synopsis, set_flags, execute).
- command(...): wrap a plain function into a Command (direct or decorator form).
- CommandGroup: an ordered, display-only bucket of commands under a label.
- Commander: owns the top-level FlagSet, the ordered groups and an output sink;
  registers commands, dispatches one invocation, and renders usage text.
- HelpCommand: the built-in "help" subcommand, bound to its Commander.

Dispatch in two phases
    <program> [top-level flags] <subcommand> [subcommand flags] [subcommand args]

    1. top-level flags are parsed once (unless the caller already parsed them);
    2. the first positional names the subcommand (first match in registration order);
    3. a fresh FlagSet is built for that subcommand, it declares its flags, and
       the remaining arguments are parsed against it;
    4. the subcommand runs and its status is returned unchanged.

    Missing or unknown subcommands and malformed subcommand flags end in
    ExitStatus.USAGE_ERROR after usage text was written. Exceptions escaping a
    subcommand end in ExitStatus.FAILURE after a rendered diagnostic.

Quick start
    from psubcommands import Commander, command

    @command(synopsis="say hi")
    def greet(context, flags, *args):
        print("hi", flags["name"])

    @greet.flags
    def _(flags):
        flags.option("-n", "--name", default="world", descr="who to greet")

    app = Commander("app", {"": [greet]})
    app.register_help_command("")
    raise SystemExit(app.execute())
"""
import functools
import inspect
import sys
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from enum import IntEnum

from .faults import *
from .flags import ErrorHandling, FlagSet
from .utils import *


class ExitStatus(IntEnum):
    """
    Posix exit status a subcommand expects to be returned to the shell.
    """
    SUCCESS = 0
    FAILURE = 1
    USAGE_ERROR = 2


class Command(ABC):
    """
    The contract every subcommand satisfies.

    Any object providing these four members can be registered; subclassing is
    a convenience, not a requirement.

    - name: stable identifier used for lookup (non-empty).
    - synopsis: single-line description, shown by help.
    - set_flags(flags): declare this command's flags on a fresh FlagSet.
    - execute(context, flags, *args): do the work and return an ExitStatus.
      'context' and 'args' are forwarded unchanged from Commander.execute().
    """

    @property
    @abstractmethod
    def name(self): ...

    @property
    @abstractmethod
    def synopsis(self): ...

    def set_flags(self, flags, /):
        """Declare flags; the default declares none."""

    @abstractmethod
    def execute(self, context, flags, /, *args): ...


def _is_command(object):
    return (
        hasattr(object, "name") and
        hasattr(object, "synopsis") and
        callable(getattr(object, "set_flags", None)) and
        callable(getattr(object, "execute", None))
    )


class FunctionCommand(Command):
    """
    A Command backed by a plain function.

    The callback is called as callback(context, flags, *args); flags are
    declared by the function registered through the .flags decorator.
    """

    name = mirror("name")
    synopsis = mirror("synopsis")

    def __init__(self, callback, /, *, name=Unset, synopsis=Unset):
        if not callable(callback):
            raise TypeError("function-command 'callback' must be callable")
        for field, object in (("name", name), ("synopsis", synopsis)):
            if not isinstance(object, str | Unset):
                raise TypeError(f"function-command {field!r} must be a string")

        self._callback = callback
        self._name = coalesce(name, getattr(callback, "__name__", ""))
        self._synopsis = coalesce(synopsis, (inspect.getdoc(callback) or "").partition("\n")[0])
        self._declare = Unset

        if not self._name or self._name.startswith("<"):
            raise ValueError("function-command 'name' cannot be empty")

    def __repr__(self):
        return "function-command(name=%r, synopsis=%r)" % (self._name, self._synopsis)

    def flags(self, declare, /):
        """
        Register the function declaring this command's flags (decorator-friendly).

        Rules
        - Must be callable, accepting the FlagSet.
        - Can be set only once per command.
        """
        if not callable(declare):
            raise TypeError("function-command flags declarer must be callable")
        if self._declare is not Unset:
            raise TypeError("function-command flags declarer cannot be overridden")
        self._declare = declare
        return declare

    def set_flags(self, flags, /):
        if self._declare is not Unset:
            self._declare(flags)

    def execute(self, context, flags, /, *args):
        return self._callback(context, flags, *args)


def command(callback=Unset, /, *, name=Unset, synopsis=Unset):
    """
    Create a Command from a function, or return a decorator that does so later.

    Invocation modes
    - Direct:     greet = command(func, synopsis="say hi")
    - Decorator:  @command(synopsis="say hi")
                  def greet(context, flags, *args): ...

    Defaults
    - name: the function's __name__.
    - synopsis: the first line of the function's docstring ("" when missing).
    """
    @rename("command")
    def wrapper(callback, /):
        if not callable(callback):
            raise TypeError("@command() must be applied to a callable")
        return FunctionCommand(callback, name=name, synopsis=synopsis)

    return wrapper(callback) if callback is not Unset else wrapper


class CommandGroup:
    """
    An ordered bucket of commands under a label, used only to organize help text.

    The empty name stands for "ungrouped" and renders as "Subcommands:".
    """

    name = mirror("name")
    commands = mirror("commands")

    def __init__(self, name, commands=(), /):
        self._name = name
        self._commands = list(commands)

    def __repr__(self):
        return "command-group(name=%r, commands=%r)" % (self._name, [command.name for command in self._commands])

    def __iter__(self):
        return iter(tuple(self._commands))

    def __len__(self):
        return len(self._commands)


class Commander:
    """
    Dispatch engine holding a set of grouped subcommands.

    Parameters
    - name: program identity, used only in usage text.
    - groups: Mapping[str, Command | Iterable[Command]], registered in mapping order.
    - flags: top-level FlagSet; by default an exit-on-error set that stops at the
      first positional argument (so subcommand flags are left for the subcommand).
    - output: writable text sink for usage and diagnostics (sys.stdout when Unset,
      resolved at write time). Reassignable through the 'output' property.

    Invariants
    - groups keep first-registration order; commands keep registration order.
    - the top-level FlagSet is parsed at most once; a caller may parse it first
      with its own arguments and execute() will not override them.
    - the top-level FlagSet's usage callback renders explain().
    """

    def __init__(self, name, /, groups=Unset, *, flags=Unset, output=Unset):
        if not isinstance(name, str):
            raise TypeError("commander 'name' must be a string")
        self._name = name
        self._groups = []
        self._output = output

        if flags is Unset:
            flags = FlagSet(name, ErrorHandling.EXIT_ON_ERROR, output=output, interspersed=False)
            self._owned = True
        elif not isinstance(flags, FlagSet):
            raise TypeError("commander 'flags' must be a flag-set")
        else:
            self._owned = False
        self._flags = flags
        self._flags.usage = self.explain

        if groups is Unset:
            return
        if not isinstance(groups, Mapping):
            raise TypeError("commander 'groups' must be a mapping of group names to commands")
        for group, commands in groups.items():
            if _is_command(commands):
                self.register(group, commands)
            elif isinstance(commands, Iterable) and not isinstance(commands, str):
                self.register(group, *commands)
            else:
                raise TypeError("commander 'groups' values must be commands or iterables of commands")

    def __repr__(self):
        return "commander(name=%r, groups=%r)" % (self._name, self._groups)

    @property
    def name(self):
        return self._name

    @property
    def groups(self):
        return tuple(self._groups)

    @property
    def flags(self):
        """The top-level FlagSet used by this Commander."""
        return self._flags

    @property
    def output(self):
        return coalesce(self._output, sys.stdout)

    @output.setter
    def output(self, output):
        self._output = output
        if self._owned:
            self._flags.output = output

    def register(self, group, /, *commands):
        """
        Append commands to the named group, creating it at the end when missing.

        Duplicate names are accepted; lookups return the first match.
        """
        if not isinstance(group, str):
            raise TypeError("register() group must be a string")
        for object in commands:
            if not _is_command(object):
                raise TypeError("register() arguments must be commands (name, synopsis, set_flags, execute)")

        for existing in self._groups:
            if existing.name == group:
                existing._commands.extend(commands)
                return
        self._groups.append(CommandGroup(group, commands))

    def register_help_command(self, group, /):
        """Register the built-in help command under the given group."""
        self.register(group, HelpCommand(self))

    def lookup(self, name, /):
        """
        Return the first command named 'name', scanning groups then commands in
        registration order, or None.
        """
        for group in self._groups:
            for object in group._commands:
                if object.name == name:
                    return object
        return None

    def execute(self, context=None, /, *args):
        """
        Find the subcommand named by the first positional argument, run it, and
        return its ExitStatus.

        If the top-level FlagSet was not parsed by the caller, it is parsed
        against sys.argv[1:] first. 'context' and 'args' are forwarded unchanged
        to the subcommand's execute().
        """
        if not self._flags.parsed:
            try:
                self._flags.parse(sys.argv[1:])
            except CommandException:
                return ExitStatus.USAGE_ERROR

        if self._flags.nargs < 1:
            self._flags.usage()
            return ExitStatus.USAGE_ERROR

        if (target := self.lookup(name := self._flags.arg(0))) is None:
            self._flags.usage()
            return ExitStatus.USAGE_ERROR

        flags = FlagSet(name, ErrorHandling.CONTINUE_ON_ERROR, output=self.output)
        flags.usage = functools.partial(self.explain_command, target)
        try:
            target.set_flags(flags)
        except Exception as exception:
            return self._delegated(target, "declaring its flags", exception)

        try:
            flags.parse(self._flags.args[1:])
        except CommandException:
            return ExitStatus.USAGE_ERROR

        try:
            status = target.execute(context, flags, *args)
        except Exception as exception:
            return self._delegated(target, "running", exception)
        return self._status(target, status)

    def _delegated(self, target, stage, exception):
        """
        Render an exception escaped from a subcommand and report FAILURE.
        """
        trigger(DelegatedCommandError(
            "subcommand %r failed while %s: %s" % (target.name, stage, str(exception) or type(exception).__name__),
            title="delegated command error",
            code=FaultCode.DELEGATED_ERROR,
            input=target.name,
            exception=exception,
            hint="this is a fault in the subcommand itself; check its implementation or logs",
        ), prog=self._name, output=self.output, propagate=False)
        return ExitStatus.FAILURE

    def _status(self, target, status):
        """
        Coerce a subcommand's return value: None is SUCCESS, ints map to ExitStatus.
        """
        if status is None:
            return ExitStatus.SUCCESS
        try:
            return ExitStatus(status)
        except (TypeError, ValueError):
            trigger(DelegatedCommandError(
                "subcommand %r returned an invalid exit status %r" % (target.name, status),
                title="invalid exit status",
                code=FaultCode.DELEGATED_ERROR,
                input=target.name,
                hint="return one of %s" % ", ".join(status.name for status in ExitStatus),
            ), prog=self._name, output=self.output, propagate=False)
            return ExitStatus.FAILURE

    def explain(self):
        """
        Write the full usage: top-level flags, then every non-empty group.
        """
        output = self.output
        output.write("Usage: %s <flags> <subcommand> <subcommand args>\n\n" % self._name)

        if usages := self._flags.flag_usages():
            output.write("Arguments:\n%s\n" % usages)

        for group in self._groups:
            if not group._commands:
                continue
            lines = ["%s:\n" % group.name if group.name else "Subcommands:\n"]
            lines.extend("\t%-15s    %s\n" % (object.name, object.synopsis) for object in group._commands)
            lines.append("\n")
            output.write("".join(lines))

    def explain_command(self, target, /):
        """
        Write one subcommand's usage: synopsis, then the flags it declares.

        The flags are declared on a throwaway FlagSet that is never parsed.
        """
        output = self.output
        output.write("Usage: %s <flags> %s <subcommand flags>\n\n%s\n\n" % (self._name, target.name, target.synopsis))

        flags = FlagSet(target.name, ErrorHandling.EXIT_ON_ERROR, output=self.output)
        target.set_flags(flags)
        if usages := flags.flag_usages():
            output.write("Arguments:\n%s" % usages)


class HelpCommand(Command):
    """
    Built-in subcommand describing the Commander it is registered into.

    - help            → full usage, SUCCESS
    - help <name>     → that subcommand's usage, SUCCESS
    - help <unknown>  → "Subcommand <unknown> not understood", usage, USAGE_ERROR
    - anything else   → usage, USAGE_ERROR

    It holds a reference to its Commander and reads the live registration
    table at execution time.
    """

    def __init__(self, commander, /):
        if not isinstance(commander, Commander):
            raise TypeError("help-command 'commander' must be a commander")
        self._commander = commander

    def __repr__(self):
        return "help-command(commander=%r)" % self._commander.name

    @property
    def name(self):
        return "help"

    @property
    def synopsis(self):
        return "describe subcommands and their syntax"

    @property
    def commander(self):
        return self._commander

    def execute(self, context, flags, /, *args):
        match flags.nargs:
            case 0:
                self._commander.explain()
                return ExitStatus.SUCCESS
            case 1:
                if (target := self._commander.lookup(name := flags.arg(0))) is not None:
                    self._commander.explain_command(target)
                    return ExitStatus.SUCCESS
                self._commander.output.write("Subcommand %s not understood\n" % name)

        flags.usage()
        return ExitStatus.USAGE_ERROR


__all__ = (
    "ExitStatus",
    "Command",
    "FunctionCommand",
    "command",
    "CommandGroup",
    "Commander",
    "HelpCommand",
)
