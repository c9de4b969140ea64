"""
Arguments module tests (Positional, Option, Flag and alias validation).

Scope
- Alias splitting and validation (malformed and duplicated names).
- Metadata sanitization and defaults of the three specs.
- Introspection: read-only properties and reprs.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (Positional, Option, Flag).
"""

import unittest
from unittest import TestCase

from cmdtree import Positional, Option, Flag, integer
from cmdtree.arguments import split_names
from cmdtree.faults import DuplicateNameError, MalformedNameError
from cmdtree.utils import Unset


class TestSplitNames(TestCase):
    """Alias spec strings."""

    def testValidNames(self):
        self.assertEqual(split_names("flag", "names", "-v"), ("-v",))
        self.assertEqual(split_names("flag", "names", "-v --verbose -d --debug"), ("-v", "--verbose", "-d", "--debug"))
        self.assertEqual(split_names("flag", "names", ("-n", "-name --dry-run")), ("-n", "-name", "--dry-run"))

    def testMalformedNames(self):
        for names in ("", "---verbose", "hello", "-1", "--no--dash", "-"):
            with self.subTest(names=names), self.assertRaises(MalformedNameError):
                split_names("flag", "names", names)

    def testDuplicateNames(self):
        with self.assertRaises(DuplicateNameError):
            split_names("flag", "names", "-v --verbose -v")

    def testNonStringName(self):
        with self.assertRaises(TypeError):
            split_names("flag", "names", ("-v", 1))


class TestPositional(TestCase):

    def testShapes(self):
        self.assertFalse(Positional("A").optional)
        self.assertFalse(Positional("A").collection)
        self.assertTrue(Positional("A", nargs="?").optional)
        self.assertTrue(Positional("A", nargs="+").collection)
        self.assertFalse(Positional("A", nargs="+").optional)
        self.assertTrue(Positional("A", nargs="*").optional)
        self.assertTrue(Positional("A", nargs="*").collection)

    def testUnsetValues(self):
        self.assertIsNone(Positional("A", nargs="?").unset())
        self.assertEqual(Positional("A", nargs="*").unset(), [])
        self.assertEqual(Positional("A", nargs="?", default="x").unset(), "x")

    def testInvalidNargs(self):
        with self.assertRaises(ValueError):
            Positional("A", nargs="x")
        with self.assertRaises(TypeError):
            Positional("A", nargs=2)

    def testInvalidMetadata(self):
        with self.assertRaises(ValueError):
            Positional("  ")
        with self.assertRaises(TypeError):
            Positional("A", type="int")
        with self.assertRaises(ValueError):
            Positional("A", descr="")

    def testReplaceKeepsFields(self):
        original = Positional(type=integer, nargs="+", descr="numbers")
        self.assertIs(original.metavar, Unset)
        replaced = original.__replace__(metavar="N")
        self.assertEqual(replaced.metavar, "N")
        self.assertIs(replaced.type, integer)
        self.assertEqual(replaced.nargs, "+")
        self.assertEqual(replaced.descr, "numbers")

    def testReplaceWithoutDescription(self):
        self.assertIsNone(Positional().__replace__(metavar="FILE").descr)
        self.assertIsNone(Option("--host").__replace__(metavar="HOST").descr)

    def testUnsetDefaultIsCopied(self):
        positional = Positional("A", nargs="*", default=[])
        first = positional.unset()
        first.append("x")
        self.assertEqual(positional.unset(), [])


class TestOptionAndFlag(TestCase):

    def testOptionFields(self):
        option = Option("-w --width", metavar="COLS", type=integer, default=80, descr=" line width ")
        self.assertEqual(option.names, ("-w", "--width"))
        self.assertEqual(option.metavar, "COLS")
        self.assertEqual(option.default, 80)
        self.assertEqual(option.descr, "line width")
        self.assertFalse(option.hidden)

    def testOptionRequiresNames(self):
        with self.assertRaises(MalformedNameError):
            Option()
        with self.assertRaises(MalformedNameError):
            Option("width")

    def testFlagFields(self):
        flag = Flag("-a", "--all", descr="do not ignore entries starting with .", hidden=1)
        self.assertEqual(flag.names, ("-a", "--all"))
        self.assertIsNone(Flag("-q").descr)
        self.assertIs(flag.hidden, True)

    def testPropertiesAreReadOnly(self):
        flag = Flag("-v")
        with self.assertRaises(AttributeError):
            flag.names = ("-x",)

    def testRepr(self):
        self.assertEqual(repr(Flag("-v")), "flag(names=('-v',), descr=None, hidden=False)")
        self.assertTrue(repr(Option("--color")).startswith("option(names=('--color',)"))

    def testSpecHooks(self):
        flag, option, positional = Flag("-v"), Option("-o"), Positional()
        self.assertIs(flag.__flag__(), flag)
        self.assertIs(option.__option__(), option)
        self.assertIs(positional.__positional__(), positional)


if __name__ == "__main__":
    unittest.main()
