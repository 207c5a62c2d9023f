# python
"""
Flags module behavioral tests (declaration, parsing forms, faults, usage text).

Scope
- Validate Flag/Switch construction and name rules.
- Validate every accepted parse form: long, short, bundled, inline, '--', '-'.
- Validate interspersed vs stop-at-first-positional parsing.
- Validate faults under both error policies, and the -h/--help request.
- Validate flag_usages() layout (alignment, defaults, hidden/deprecated, labels).

Conventions
- Test method names follow CamelCase per project convention.
- Every FlagSet writes to an in-memory output so faults can be inspected.
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase, mock

from psubcommands import (
    ErrorHandling,
    Flag,
    Switch,
    FlagSet,
    boolean,
    HelpRequested,
    UnknownFlagError,
    MalformedFlagError,
    MissingValueError,
    InvalidValueError,
    InvalidChoiceError,
    MissingRequiredFlagError,
)


def greeting(error_handling=ErrorHandling.CONTINUE_ON_ERROR, **options):
    flags = FlagSet("tool", error_handling, output=io.StringIO(), **options)
    flags.option("-n", "--name", default="world", descr="who to greet")
    flags.option("-c", "--count", type=int, default=1, descr="how many times")
    flags.switch("-l", "--loud", descr="shout the greeting")
    flags.switch("-v", "--verbose", descr="explain what happens")
    return flags


class TestSpecs(TestCase):
    """Behavioral tests for Flag and Switch specifications."""

    def testFlagSplitsNames(self):
        spec = Flag("--name", "-n")
        self.assertEqual(spec.names, ("-n", "--name"))
        self.assertEqual(spec.name, "name")
        self.assertEqual(spec.shorthand, "n")

    def testFlagWithoutShorthand(self):
        spec = Flag("--dry-run")
        self.assertEqual(spec.name, "dry-run")
        self.assertIsNone(spec.shorthand)

    def testFlagRequiresExactlyOneLongName(self):
        with self.assertRaises(ValueError):
            Flag("-n")
        with self.assertRaises(ValueError):
            Flag("--name", "--label")

    def testFlagRejectsInvalidNames(self):
        for name in ("name", "-name", "--9lives", "---x", "--"):
            with self.subTest(name=name), self.assertRaises(ValueError):
                Flag(name)

    def testFlagRejectsDuplicateNames(self):
        with self.assertRaises(ValueError):
            Flag("--name", "--name")

    def testFlagRejectsNonCallableType(self):
        with self.assertRaises(TypeError):
            Flag("--count", type=3)

    def testFlagRejectsDuplicateChoices(self):
        with self.assertRaises(ValueError):
            Flag("--mode", choices=["a", "a"])

    def testFlagRejectsMetavarWithChoices(self):
        with self.assertRaises(TypeError):
            Flag("--mode", metavar="MODE", choices=["a", "b"])

    def testRequiredAndDeprecatedAreExclusive(self):
        with self.assertRaises(TypeError):
            Flag("--name", required=True, deprecated="gone")

    def testEmptyDescrRejected(self):
        with self.assertRaises(ValueError):
            Switch("--loud", descr="   ")

    def testSwitchDefaultMustBeBoolean(self):
        with self.assertRaises(TypeError):
            Switch("--loud", default="yes")

    def testTypenameResolution(self):
        self.assertEqual(Flag("--name").typename, "string")
        self.assertEqual(Flag("--count", type=int).typename, "int")
        self.assertEqual(Flag("--ratio", type=float).typename, "float")
        self.assertEqual(Flag("--file", metavar="PATH").typename, "PATH")
        self.assertEqual(Flag("--mode", choices=["a", "b"]).typename, "{a|b}")
        self.assertEqual(Flag("--raw", type=lambda text: text).typename, "value")
        self.assertEqual(Switch("--loud").typename, "")

    def testSpecsAreReadOnly(self):
        spec = Flag("--name")
        with self.assertRaises(AttributeError):
            spec.name = "other"

    def testReprNamesTheType(self):
        self.assertTrue(repr(Switch("--loud")).startswith("switch(names=('--loud',)"))

    def testBooleanLiterals(self):
        for text in ("1", "t", "T", "TRUE", "true", "True"):
            self.assertIs(boolean(text), True)
        for text in ("0", "f", "F", "FALSE", "false", "False"):
            self.assertIs(boolean(text), False)
        with self.assertRaises(ValueError):
            boolean("yes")


class TestDeclaration(TestCase):
    """Behavioral tests for FlagSet declaration and queries."""

    def testDefaultsBecomeValues(self):
        flags = greeting()
        self.assertEqual(flags["name"], "world")
        self.assertEqual(flags["count"], 1)
        self.assertIs(flags["loud"], False)
        self.assertFalse(flags.parsed)

    def testRedefiningLongNameRaises(self):
        flags = greeting()
        with self.assertRaises(ValueError):
            flags.option("--name")

    def testRedefiningShorthandRaises(self):
        flags = greeting()
        with self.assertRaises(ValueError):
            flags.switch("-n", "--nope")

    def testAddRequiresSpec(self):
        with self.assertRaises(TypeError):
            greeting().add(object())

    def testLookupAcceptsEveryForm(self):
        flags = greeting()
        self.assertIs(flags.lookup("name"), flags.lookup("--name"))
        self.assertIs(flags.lookup("-n"), flags.lookup("--name"))
        self.assertIsNone(flags.lookup("--missing"))
        self.assertIn("-l", flags)
        self.assertNotIn("--missing", flags)

    def testGetUndeclaredRaisesKeyError(self):
        with self.assertRaises(KeyError):
            greeting()["missing"]

    def testSetConvertsAndMarksChanged(self):
        flags = greeting()
        flags.set("count", "4")
        self.assertEqual(flags["count"], 4)
        self.assertTrue(flags.changed("--count"))
        self.assertFalse(flags.changed("name"))
        self.assertEqual(flags.nflag, 1)

    def testSetRejectsInvalidValue(self):
        with self.assertRaises(ValueError):
            greeting().set("count", "four")

    def testNamespaceIsReadOnly(self):
        namespace = greeting().namespace
        self.assertEqual(namespace["name"], "world")
        with self.assertRaises(TypeError):
            namespace["name"] = "other"

    def testVisitOrdersByName(self):
        flags = greeting()
        flags.parse(["--verbose", "--count=2"])
        visited, declared = [], []
        flags.visit(lambda spec: visited.append(spec.name))
        flags.visit_all(lambda spec: declared.append(spec.name))
        self.assertEqual(visited, ["count", "verbose"])
        self.assertEqual(declared, ["count", "loud", "name", "verbose"])


class TestParsing(TestCase):
    """Behavioral tests for the accepted argument forms."""

    def testLongForms(self):
        for arguments in (["--name=ada"], ["--name", "ada"]):
            flags = greeting()
            flags.parse(arguments)
            self.assertEqual(flags["name"], "ada")
            self.assertTrue(flags.parsed)

    def testEmptyInlineValue(self):
        flags = greeting()
        flags.parse(["--name="])
        self.assertEqual(flags["name"], "")
        self.assertTrue(flags.changed("name"))

    def testShortForms(self):
        for arguments in (["-n", "ada"], ["-nada"], ["-n=ada"]):
            flags = greeting()
            flags.parse(arguments)
            self.assertEqual(flags["name"], "ada")

    def testBundledSwitches(self):
        flags = greeting()
        flags.parse(["-lv"])
        self.assertTrue(flags["loud"])
        self.assertTrue(flags["verbose"])

    def testBundleEndingWithValueFlag(self):
        flags = greeting()
        flags.parse(["-lvn", "ada"])
        self.assertTrue(flags["loud"])
        self.assertTrue(flags["verbose"])
        self.assertEqual(flags["name"], "ada")

    def testSwitchInlineLiteral(self):
        flags = greeting()
        flags.parse(["--loud=false", "-v=1"])
        self.assertIs(flags["loud"], False)
        self.assertIs(flags["verbose"], True)

    def testSwitchDoesNotConsumeNextToken(self):
        flags = greeting()
        flags.parse(["--loud", "false"])
        self.assertIs(flags["loud"], True)
        self.assertEqual(flags.args, ["false"])

    def testConverterApplied(self):
        flags = greeting()
        flags.parse(["--count", "3"])
        self.assertEqual(flags["count"], 3)

    def testRepeatedFlagLastWins(self):
        flags = greeting()
        flags.parse(["--name=ada", "-n", "grace"])
        self.assertEqual(flags["name"], "grace")

    def testDoubleDashEndsFlags(self):
        flags = greeting()
        flags.parse(["-l", "--", "-n", "ada"])
        self.assertTrue(flags["loud"])
        self.assertEqual(flags["name"], "world")
        self.assertEqual(flags.args, ["-n", "ada"])

    def testSingleDashIsPositional(self):
        flags = greeting()
        flags.parse(["-", "-l"])
        self.assertEqual(flags.args, ["-"])
        self.assertTrue(flags["loud"])

    def testInterspersedFlags(self):
        flags = greeting()
        flags.parse(["a", "-l", "b"])
        self.assertEqual(flags.args, ["a", "b"])
        self.assertTrue(flags["loud"])

    def testFirstPositionalStopsWhenNotInterspersed(self):
        flags = greeting(interspersed=False)
        flags.parse(["-v", "a", "-l", "b"])
        self.assertTrue(flags["verbose"])
        self.assertFalse(flags["loud"])
        self.assertEqual(flags.args, ["a", "-l", "b"])

    def testPositionalQueries(self):
        flags = greeting()
        flags.parse(["a", "b"])
        self.assertEqual(flags.nargs, 2)
        self.assertEqual(flags.arg(0), "a")
        self.assertEqual(flags.arg(1), "b")
        self.assertEqual(flags.arg(2), "")
        self.assertEqual(flags.arg(-1), "")

    def testArgsIsACopy(self):
        flags = greeting()
        flags.parse(["a"])
        flags.args.append("b")
        self.assertEqual(flags.args, ["a"])

    def testParseShellString(self):
        flags = greeting()
        flags.parse("-n 'ada lovelace' rest")
        self.assertEqual(flags["name"], "ada lovelace")
        self.assertEqual(flags.args, ["rest"])

    def testParseRejectsNonStrings(self):
        with self.assertRaises(TypeError):
            greeting().parse(["--count", 3])
        with self.assertRaises(TypeError):
            greeting().parse(3)

    def testDeclaredHelpIsAnOrdinaryFlag(self):
        flags = FlagSet("tool", output=io.StringIO())
        flags.switch("-h", "--help")
        flags.parse(["-h"])
        self.assertTrue(flags["help"])


class TestFaults(TestCase):
    """Behavioral tests for parse faults and error policies."""

    def testUnknownLongFlagSuggests(self):
        flags = greeting()
        with self.assertRaises(UnknownFlagError) as context:
            flags.parse(["--nam=ada"])
        self.assertEqual(context.exception.options["input"], "--nam")
        self.assertIn("--name", context.exception.options["suggestions"])

    def testUnknownShorthandRaises(self):
        with self.assertRaises(UnknownFlagError):
            greeting().parse(["-lx"])

    def testMalformedFlagRaises(self):
        with self.assertRaises(MalformedFlagError):
            greeting().parse(["--9lives"])

    def testMissingValueRaises(self):
        with self.assertRaises(MissingValueError):
            greeting().parse(["--name"])
        with self.assertRaises(MissingValueError):
            greeting().parse(["-ln"])

    def testInvalidValueRaises(self):
        with self.assertRaises(InvalidValueError) as context:
            greeting().parse(["-l", "--count=x"])
        self.assertEqual(context.exception.options["index"], 2)
        self.assertIsInstance(context.exception.options["exception"], ValueError)

    def testInvalidSwitchLiteralRaises(self):
        with self.assertRaises(InvalidValueError):
            greeting().parse(["--loud=maybe"])

    def testInvalidChoiceRaises(self):
        flags = FlagSet("tool", output=io.StringIO())
        flags.option("--mode", choices=["fast", "slow"])
        flags.parse(["--mode=fast"])
        self.assertEqual(flags["mode"], "fast")
        with self.assertRaises(InvalidChoiceError):
            flags.parse(["--mode=medium"])

    def testMissingRequiredFlagRaises(self):
        flags = FlagSet("tool", output=io.StringIO())
        flags.option("--token", required=True)
        flags.option("--user", required=True)
        with self.assertRaises(MissingRequiredFlagError) as context:
            flags.parse(["--user=ada"])
        self.assertEqual(context.exception.options["missing"], ("token",))

    def testFaultRenderedThenUsage(self):
        flags = greeting()
        with self.assertRaises(UnknownFlagError):
            flags.parse(["--bogus"])
        output = flags.output.getvalue()
        self.assertIn("unknown flag '--bogus' at first position", output)
        self.assertIn("Usage of tool:", output)
        self.assertLess(output.index("--bogus"), output.index("Usage of tool:"))

    def testCustomUsageCallback(self):
        flags = greeting()
        flags.usage = mock.Mock()
        with self.assertRaises(UnknownFlagError):
            flags.parse(["--bogus"])
        flags.usage.assert_called_once_with()

    def testExitOnErrorExitsWithStatusTwo(self):
        flags = greeting(ErrorHandling.EXIT_ON_ERROR)
        with self.assertRaises(SystemExit) as context:
            flags.parse(["--bogus"])
        self.assertEqual(context.exception.code, 2)

    def testHelpRequestContinues(self):
        flags = greeting()
        with self.assertRaises(HelpRequested):
            flags.parse(["--help"])
        self.assertTrue(flags.output.getvalue().startswith("Usage of tool:\n"))

    def testHelpRequestExitsWithStatusZero(self):
        flags = greeting(ErrorHandling.EXIT_ON_ERROR)
        with self.assertRaises(SystemExit) as context:
            flags.parse(["-h"])
        self.assertEqual(context.exception.code, 0)

    def testDeprecatedFlagWarns(self):
        flags = FlagSet("tool", output=io.StringIO())
        flags.option("--old", deprecated="use --new instead")
        flags.parse(["--old=1"])
        self.assertEqual(flags["old"], "1")
        self.assertIn("has been deprecated", flags.output.getvalue())


class TestUsage(TestCase):
    """Behavioral tests for flag_usages() and the default usage callback."""

    def testAlignedSortedLines(self):
        self.assertEqual(greeting().flag_usages(), (
            "  -c, --count int     how many times (default 1)\n"
            "  -l, --loud          shout the greeting\n"
            "  -n, --name string   who to greet (default \"world\")\n"
            "  -v, --verbose       explain what happens\n"
        ))

    def testDeclarationOrderWhenUnsorted(self):
        lines = greeting(sort_flags=False).flag_usages().splitlines()
        self.assertTrue(lines[0].startswith("  -n, --name string"))
        self.assertTrue(lines[-1].startswith("  -v, --verbose"))

    def testLongOnlyFlagsAreIndented(self):
        flags = FlagSet("tool")
        flags.option("--file", descr="read `path` from disk")
        flags.switch("-q", "--quiet", default=True)
        self.assertEqual(flags.flag_usages(), (
            "      --file path   read path from disk\n"
            "  -q, --quiet       (default true)\n"
        ))

    def testHiddenAndDeprecatedAreSkipped(self):
        flags = FlagSet("tool")
        flags.switch("--secret", hidden=True)
        flags.option("--old", deprecated="gone")
        flags.option("--token", required=True, descr="api token")
        self.assertEqual(flags.flag_usages(), "      --token string   api token (required)\n")

    def testEmptyFlagSetRendersNothing(self):
        self.assertEqual(FlagSet("tool").flag_usages(), "")

    def testDefaultUsage(self):
        flags = FlagSet("tool", output=io.StringIO())
        flags.switch("--loud")
        flags.usage()
        self.assertEqual(flags.output.getvalue(), "Usage of tool:\n      --loud\n")


if __name__ == "__main__":
    unittest.main()
