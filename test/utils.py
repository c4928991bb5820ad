"""
Tests for the shared utilities.

This module verifies the building blocks every layer relies on:
- The Unset sentinel (singleton, falsy, final, union-friendly).
- coalesce() and rename().
- mirror() handing out copies of private containers.
- identifiers() deriving destination field candidates.
- pluralize() for labels.
"""
import copy
import unittest
from unittest import TestCase

from argbind.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the `Unset` sentinel.
    """

    def testSingleton(self) -> None:
        """
        The constructor returns the same object reference on every call.
        """
        self.assertIs(UnsetType(), Unset)
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)

    def testFalsyButDistinct(self) -> None:
        """
        Unset is falsy but is neither None nor any other falsy value.
        """
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertNotEqual(Unset, 0)
        self.assertEqual(repr(Unset), "Unset")

    def testFinal(self) -> None:
        """
        The sentinel type cannot be subclassed.
        """
        with self.assertRaises(TypeError):
            type("Derived", (UnsetType,), {})

    def testUnion(self) -> None:
        """
        Unset composes with types in isinstance() unions.
        """
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertTrue(isinstance("x", str | Unset))
        self.assertFalse(isinstance(1, str | Unset))


class HelpersTest(TestCase):
    """
    Test suite for coalesce(), rename() and mirror().
    """

    def testCoalesce(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertEqual(coalesce(0, 1), 0)
        self.assertEqual(coalesce("", "fallback"), "")

    def testRename(self) -> None:
        @rename("renamed")
        def function():
            pass

        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

        with self.assertRaises(TypeError):
            rename(1, "name")
        with self.assertRaises(TypeError):
            rename(1, 2, 3)

    def testMirrorCopiesContainers(self) -> None:
        class Holder:
            items = mirror("items")

            def __init__(self):
                self._items = [1, [2, 3]]

        holder = Holder()
        holder.items.append(4)
        holder.items[1].append(5)
        self.assertEqual(holder._items, [1, [2, 3]])

        with self.assertRaises(AttributeError):
            holder.items = []


class IdentifiersTest(TestCase):
    """
    Test suite for destination field derivation.
    """

    def testSnakeThenCapWords(self) -> None:
        self.assertEqual(identifiers("--no-checkout"), ("no_checkout", "NoCheckout"))
        self.assertEqual(identifiers("--log.level"), ("log_level", "LogLevel"))
        self.assertEqual(identifiers("-v"), ("v", "V"))

    def testDuplicatesFolded(self) -> None:
        self.assertEqual(identifiers("PosBool1"), ("PosBool1",))

    def testInvalidCandidatesDropped(self) -> None:
        self.assertEqual(identifiers("--2fa"), ())

    def testRejectsNonStrings(self) -> None:
        with self.assertRaises(TypeError):
            identifiers(1)


class PluralizeTest(TestCase):
    """
    Test suite for label pluralization.
    """

    def testRules(self) -> None:
        self.assertEqual(pluralize("command"), "commands")
        self.assertEqual(pluralize("switch"), "switches")
        self.assertEqual(pluralize("category"), "categories")
        self.assertEqual(pluralize("key"), "keys")
        self.assertEqual(pluralize("sub command"), "sub commands")
        self.assertEqual(pluralize("BOX"), "BOXES")


if __name__ == "__main__":
    unittest.main()
