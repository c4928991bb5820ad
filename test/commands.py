"""
Commands module behavioral tests (registration, bookkeeping, composition).

Scope
- Validate destination resolution (explicit dest, snake_case then CapWords).
- Validate every registration rule: parser attachment, duplicates, help spellings,
  unbounded positionals, multi-value arities, inherit ordering, rebinding.
- Validate required/maximum positional accounting.
- Validate subcommand attachment modes and inherit copies.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (ArgumentParser, Command, Argument).
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from argbind import Argument, ArgumentParser, Command


class Options:
    verbose: bool = False
    level: int = 0
    NoCheckout: bool = False
    no_color: bool = False
    NoColor: bool = False
    pair: list[int] = []
    name: str = ""
    names: list[str] = []
    first: str = ""
    second: str = ""
    extra: str = ""


class Unsupported:
    blob: bytes = b""


def build(values=None):
    parser = ArgumentParser(Command("tool", values=Options() if values is None else values))
    return parser, parser.root


class TestDestination(TestCase):
    """Destination field resolution."""

    def testSnakeCaseFirst(self):
        parser, root = build()
        argument = root.add(Argument("--no-color"))
        self.assertEqual(argument.dest, "no_color")

    def testCapWordsFallback(self):
        parser, root = build()
        argument = root.add(Argument("--no-checkout"))
        self.assertEqual(argument.dest, "NoCheckout")

    def testLaterSpellingsAreCandidates(self):
        parser, root = build()
        argument = root.add(Argument("-q", "--verbose"))
        self.assertEqual(argument.dest, "verbose")

    def testExplicitDest(self):
        parser, root = build()
        argument = root.add(Argument("-n", dest="level"))
        self.assertEqual(argument.dest, "level")
        self.assertEqual(argument.nargs, 1)

    def testMissingDestinationRaises(self):
        parser, root = build()
        with self.assertRaises(ValueError) as context:
            root.add(Argument("--nope"))
        self.assertEqual(
            str(context.exception),
            "could not find destination field for argument --nope; checked nope, Nope",
        )

    def testUnsupportedKindRaises(self):
        parser, root = build(Unsupported())
        with self.assertRaises(TypeError):
            root.add(Argument("--blob"))

    def testChoicesOfWrongKindRaise(self):
        parser, root = build()
        with self.assertRaises(TypeError) as context:
            root.add(Argument("--level", choices=["low", "high"]))
        self.assertIn("choices should be a sequence of int", str(context.exception))

    def testBindingResolvesArity(self):
        parser, root = build()
        self.assertEqual(root.add(Argument("--verbose")).nargs, 0)
        self.assertEqual(root.add(Argument("--level")).nargs, 1)
        self.assertEqual(root.add(Argument(name="name")).nargs, 1)


class TestRegistration(TestCase):
    """Registration rules."""

    def testDetachedCommandRejected(self):
        with self.assertRaises(TypeError):
            Command("tool", values=Options()).add(Argument("--verbose"))

    def testCommandWithoutValuesRejected(self):
        parser = ArgumentParser(Command("tool"))
        with self.assertRaises(TypeError):
            parser.add(Argument("--verbose"))

    def testNonArgumentRejected(self):
        parser, root = build()
        with self.assertRaises(TypeError):
            root.add("--verbose")

    def testDuplicateSpellingRejected(self):
        parser, root = build()
        root.add(Argument("-v", "--verbose"))
        with self.assertRaises(ValueError):
            root.add(Argument("-v", dest="level"))

    def testHelpSpellingRejected(self):
        parser, root = build()
        with self.assertRaises(ValueError):
            root.add(Argument("-h", dest="verbose"))

    def testCustomHelpSpellings(self):
        parser = ArgumentParser(Command(values=Options()), helpers=("--usage",))
        parser.add(Argument("-h", dest="verbose"))
        argument = Argument("--usage", dest="level")
        with self.assertRaises(ValueError):
            parser.add(argument)

    def testDuplicatePositionalRejected(self):
        parser, root = build()
        root.add(Argument(name="name"))
        with self.assertRaises(ValueError):
            root.add(Argument(name="name"))

    def testPositionalAfterUnboundedRejected(self):
        parser, root = build()
        root.add(Argument(name="names", nargs="*"))
        with self.assertRaises(ValueError):
            root.add(Argument(name="name"))

    def testOptionalMayBeFollowed(self):
        parser, root = build()
        root.add(Argument(name="first", nargs="?"))
        root.add(Argument(name="second"))
        self.assertEqual([argument.name for argument in root.positionals], ["first", "second"])

    def testMultiValueArityNeedsList(self):
        parser, root = build()
        with self.assertRaises(ValueError):
            root.add(Argument("--level", nargs=2))
        with self.assertRaises(ValueError):
            root.add(Argument(name="name", nargs="+"))
        self.assertEqual(root.add(Argument("--pair", nargs=2)).nargs, 2)

    def testArgumentBoundOnlyOnce(self):
        parser, root = build()
        argument = root.add(Argument("--verbose"))
        other = root.command("other", values=Options())
        with self.assertRaises(ValueError):
            other.add(argument)

    def testInheritAfterChildrenRejected(self):
        parser, root = build()
        root.command("sub", values=Options())
        with self.assertRaises(ValueError):
            root.add(Argument("--verbose", inherit=True))


class TestBookkeeping(TestCase):
    """Required and maximum positional counters."""

    def counters(self, *arities):
        parser, root = build()
        for name, nargs in zip(("first", "second", "extra", "names"), arities):
            root.add(Argument(name="names" if nargs in ("+", "*") else name, nargs=nargs))
        return root.required, root.maximum

    def testEmpty(self):
        parser, root = build()
        self.assertEqual((root.required, root.maximum), (0, 0))

    def testFixed(self):
        parser, root = build()
        root.add(Argument(name="names", nargs=3))
        self.assertEqual((root.required, root.maximum), (3, 3))

    def testOptional(self):
        self.assertEqual(self.counters("?", 1), (1, 2))

    def testOneOrMore(self):
        self.assertEqual(self.counters(1, "+"), (2, None))

    def testZeroOrMore(self):
        self.assertEqual(self.counters("?", "*"), (0, None))


class TestComposition(TestCase):
    """Subcommand attachment."""

    def testAttachByName(self):
        parser, root = build()
        child = root.command("sub", values=Options(), descr="a subcommand")
        self.assertIs(child.parent, root)
        self.assertIs(child.parser, parser)
        self.assertEqual(child.route, "tool sub")
        self.assertEqual(list(root.children), ["sub"])

    def testAttachInstance(self):
        parser, root = build()
        child = parser.command(Command("sub", values=Options()))
        self.assertIs(root.children["sub"], child)

    def testAttachCallable(self):
        parser, root = build()

        def deploy(command, values):
            pass

        child = root.command(deploy, values=Options())
        self.assertEqual(child.name, "deploy")
        self.assertIs(child.callback, deploy)

    def testDecorator(self):
        parser, root = build()

        @parser.command(name="run", values=Options())
        def handler(command, values):
            pass

        self.assertIsInstance(handler, Command)
        self.assertEqual(handler.name, "run")
        self.assertIs(root.children["run"], handler)

    def testDuplicateChildRejected(self):
        parser, root = build()
        root.command("sub", values=Options())
        with self.assertRaises(ValueError):
            root.command("sub", values=Options())

    def testAttachedChildRejected(self):
        parser, root = build()
        child = root.command("sub", values=Options())
        with self.assertRaises(ValueError):
            root.command("other").command(child)

    def testUnnamedChildRejected(self):
        parser, root = build()
        with self.assertRaises(ValueError):
            root.command(Command(values=Options()))

    def testInheritCopies(self):
        parser, root = build()
        verbose = root.add(Argument("-v", "--verbose", inherit=True))
        child = root.command("sub", values=Options())
        grandchild = child.command("leaf", values=Options())

        for command in (child, grandchild):
            copy = command._lookup("--verbose")
            self.assertIsNotNone(copy)
            self.assertIsNot(copy, verbose)
            self.assertIs(copy.command, command)
            self.assertTrue(copy.inherit)

    def testRootNameDefaultsToProgram(self):
        parser = ArgumentParser(Command(values=Options()))
        self.assertIsInstance(parser.root.name, str)
        self.assertTrue(parser.root.name)

    def testRootBoundOnce(self):
        parser, root = build()
        with self.assertRaises(ValueError):
            ArgumentParser(root)


if __name__ == "__main__":
    unittest.main()
