"""
Process-wide default Commander and the free functions delegating to it.

The default Commander is named after the running program
(os.path.basename(sys.argv[0])) and built on first use, once per process.

    import psubcommands.defaults as subcommands

    subcommands.register("", greet)
    subcommands.register_help_command("")
    raise SystemExit(subcommands.execute())
"""
import functools
import os
import sys

from .commander import Commander


@functools.cache
def default_commander():
    """Return the lazily built process-wide Commander."""
    return Commander(os.path.basename(sys.argv[0]))


def flagset():
    """Top-level FlagSet of the default Commander."""
    return default_commander().flags


def register(group, /, *commands):
    default_commander().register(group, *commands)


def register_help_command(group, /):
    default_commander().register_help_command(group)


def execute(context=None, /, *args):
    """Run the default Commander; see Commander.execute."""
    return default_commander().execute(context, *args)


__all__ = (
    "default_commander",
    "flagset",
    "register",
    "register_help_command",
    "execute",
)
