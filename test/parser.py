"""
Parser context behavioral tests (configuration, runner, help rendering).

Scope
- Validate ArgumentParser configuration checks and the message catalog hook.
- Validate __invoke__/invoke: help to stdout, faults raised or printed with exit(1),
  callbacks, delegated callback failures and missing commands.
- Validate the rendered help layout (usage, options, positionals, subcommands).

Conventions
- Test method names follow CamelCase per project convention.
- Output is captured with contextlib redirections; rich resolves the streams lazily.
"""

from __future__ import annotations

import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import TestCase

from rich.console import Console

from argbind import (
    DEFAULT_MESSAGES,
    Argument,
    ArgumentParser,
    Command,
    Messages,
    ParseResult,
    invoke,
)
from argbind.faults import (
    DelegatedCommandError,
    FaultCode,
    MissingCommandError,
    UnknownSwitchError,
)


class Options:
    verbose: bool = False
    string: str = ""
    level: int = 0
    names: list[str] = []


def build(**options):
    calls = []

    def main(command, values):
        calls.append((command, values))

    parser = ArgumentParser(Command("tool", values=Options(), callback=main, descr="does things"), **options)
    parser.add(Argument("-v", "--verbose", descr="talk more"))
    parser.add(Argument("-s", "--string", metavar="TEXT"))
    parser.add(Argument("--level", choices=[1, 2, 3]))
    return parser, calls


def rendered(renderable):
    console = Console(file=io.StringIO(), width=100, color_system=None)
    console.print(renderable)
    return console.file.getvalue()


class TestConfiguration(TestCase):
    """Constructor checks."""

    def testRootMustBeCommand(self):
        with self.assertRaises(TypeError):
            ArgumentParser(Options())

    def testMessagesMustBeCatalog(self):
        with self.assertRaises(TypeError):
            ArgumentParser(Command(values=Options()), messages={"usage": "usage"})

    def testHelpersValidation(self):
        with self.assertRaises(TypeError):
            ArgumentParser(Command(values=Options()), helpers="-h")
        with self.assertRaises(ValueError):
            ArgumentParser(Command(values=Options()), helpers=("help",))
        with self.assertRaises(ValueError):
            ArgumentParser(Command(values=Options()), helpers=())
        with self.assertRaises(ValueError):
            ArgumentParser(Command(values=Options()), helpers=("-h", "-h"))

    def testFlags(self):
        parser, _ = build(shell=True, fancy=True, colorful=True)
        self.assertTrue(parser.shell)
        self.assertTrue(parser.fancy)
        self.assertTrue(parser.colorful)
        self.assertEqual(parser.helpers, ["-h", "--help"])
        self.assertEqual(parser.helper, "--help")

    def testParseArgsRejectsStrings(self):
        parser, _ = build()
        with self.assertRaises(TypeError):
            parser.parse_args("--verbose")
        with self.assertRaises(TypeError):
            parser.parse_args(["--verbose", 1])

    def testConsolesMustBeRich(self):
        with self.assertRaises(TypeError):
            ArgumentParser(Command(values=Options()), stdout=io.StringIO())

    def testCustomMessages(self):
        messages = DEFAULT_MESSAGES._replace(unknown_switch="no such switch %r (%s token)")
        parser = ArgumentParser(Command(values=Options()), messages=messages)
        result = parser.parse_args(["--nope"])
        self.assertEqual(str(result.error), "no such switch '--nope' (first token)")
        self.assertIs(parser.messages, messages)
        self.assertIsInstance(messages, Messages)


class TestInvoke(TestCase):
    """Runner behavior."""

    def testCallback(self):
        parser, calls = build()
        result = parser.__invoke__(["--verbose", "--string", "x"])
        self.assertIsInstance(result, ParseResult)
        self.assertEqual(len(calls), 1)
        command, values = calls[0]
        self.assertIs(command, parser.root)
        self.assertIs(values.verbose, True)
        self.assertEqual(values.string, "x")

    def testStringPromptIsShellSplit(self):
        parser, calls = build()
        parser.__invoke__('--string "a b"')
        self.assertEqual(calls[0][1].string, "a b")

    def testInvalidPrompt(self):
        parser, _ = build()
        with self.assertRaises(TypeError):
            parser.__invoke__(42)
        with self.assertRaises(TypeError):
            parser.__invoke__(["--verbose", None])

    def testHelpGoesToStdout(self):
        parser, calls = build()
        with redirect_stdout(io.StringIO()) as stdout:
            result = parser.__invoke__(["--help"])
        self.assertTrue(result.help)
        self.assertIn("usage: tool", stdout.getvalue())
        self.assertEqual(calls, [])

    def testFaultIsRaisedWithContext(self):
        parser, calls = build()
        with self.assertRaises(UnknownSwitchError) as context:
            parser.__invoke__(["--verbse"])
        self.assertIs(context.exception.options["tool"], parser)
        self.assertFalse(context.exception.options["shell"])
        self.assertIn("help", context.exception.options)
        self.assertEqual(calls, [])

    def testShellModePrintsAndExits(self):
        parser, calls = build(shell=True)
        with redirect_stderr(io.StringIO()) as stderr, self.assertRaises(SystemExit) as context:
            parser.__invoke__(["--verbse"])
        self.assertEqual(context.exception.code, 1)
        output = stderr.getvalue()
        self.assertIn("unknown switch '--verbse' at first position", output)
        self.assertIn(str(FaultCode.UNKNOWN_SWITCH.value), output)
        self.assertIn("--verbose", output)

    def testHostConsoles(self):
        stdout = Console(file=io.StringIO(), width=100, color_system=None)
        stderr = Console(file=io.StringIO(), width=100, color_system=None)
        parser, calls = build(shell=True, stdout=stdout, stderr=stderr)
        self.assertIs(parser.stdout, stdout)

        parser.__invoke__(["--help"])
        self.assertIn("usage: tool", stdout.file.getvalue())

        with self.assertRaises(SystemExit):
            parser.__invoke__(["--verbse"])
        self.assertIn("unknown switch '--verbse'", stderr.file.getvalue())

    def testDelegatedError(self):
        def broken(command, values):
            raise RuntimeError("boom")

        parser = ArgumentParser(Command("tool", values=Options(), callback=broken))
        with self.assertRaises(DelegatedCommandError) as context:
            parser.__invoke__([])
        self.assertEqual(str(context.exception), "'tool' failed: boom")
        self.assertIsInstance(context.exception.options["error"], RuntimeError)

    def testMissingCommand(self):
        parser = ArgumentParser(Command("tool", values=Options()))
        parser.command("sub", values=Options())
        with redirect_stderr(io.StringIO()) as stderr, self.assertRaises(MissingCommandError):
            parser.__invoke__([])
        self.assertIn("usage: tool", stderr.getvalue())

    def testSubcommandCallback(self):
        parser, calls = build()
        seen = []

        @parser.command(name="run", values=Options())
        def run(command, values):
            seen.append(values.verbose)

        parser.__invoke__(["-v", "run"])
        self.assertEqual(seen, [False])
        self.assertEqual(calls, [])

    def testInvokeFunction(self):
        parser, calls = build()
        invoke(parser, ["-v"])
        self.assertEqual(len(calls), 1)

        calls = []
        command = Command("solo", values=Options(), callback=lambda command, values: calls.append(values))
        invoke(command, [])
        self.assertEqual(len(calls), 1)
        self.assertIsNotNone(command.parser)

        with self.assertRaises(TypeError):
            invoke(42)


class TestHelp(TestCase):
    """Rendered help."""

    def testRootHelp(self):
        parser, _ = build()
        parser.add(Argument(name="names", nargs="+", descr="files to process"))
        parser.command("sub", values=Options(), descr="a subcommand")
        root = parser.root
        root_help = rendered(parser.help(ParseResult(root, ())))

        self.assertIn("usage: tool [options] <names> [<names> ...] <command>", root_help)
        self.assertIn("does things", root_help)
        self.assertIn("-v, --verbose", root_help)
        self.assertIn("talk more", root_help)
        self.assertIn("-s, --string TEXT", root_help)
        self.assertIn("--level {1,2,3}", root_help)
        self.assertIn("-h, --help", root_help)
        self.assertIn("show this help message and exit", root_help)
        self.assertIn("positionals:", root_help)
        self.assertIn("files to process", root_help)
        self.assertIn("subcommands", root_help)
        self.assertIn("a subcommand", root_help)

    def testSubcommandHelpUsesRoute(self):
        parser, _ = build()
        child = parser.command("sub", values=Options(), epilog="see the manual")
        result = parser.parse_args(["sub", "-h"])
        child_help = rendered(parser.help(result))
        self.assertIs(result.command, child)
        self.assertIn("usage: tool sub [options]", child_help)
        self.assertIn("see the manual", child_help)

    def testFancyHelp(self):
        parser, _ = build(fancy=True)
        self.assertIn("TOOL HELP", rendered(parser.help(ParseResult(parser.root, ()))))


if __name__ == "__main__":
    unittest.main()
