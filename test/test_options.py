"""
Options module behavioral tests (defaults, validation, environment loading).

Scope
- Validate defaults and normalization (trimming, owners frozenset, wait float).
- Validate TypeError/ValueError on malformed fields.
- Validate Options.from_environ() with a custom mapping.

Conventions
- Test method names follow CamelCase per project convention.
- from_environ() is always given an explicit mapping; os.environ is never touched.
"""

import unittest
from unittest import TestCase

from herald import Options


class TestOptions(TestCase):
    def testDefaults(self):
        options = Options("1234")
        self.assertEqual(options.id, "1234")
        self.assertEqual(options.prefix, "=")
        self.assertEqual(options.owners, set())
        self.assertEqual(options.prompt_limit, 1)
        self.assertEqual(options.wait, 30.0)
        self.assertTrue(options.mentions)

    def testNormalization(self):
        options = Options(" 1234 ", prefix=" darling ", owners=[" 42 ", "7"], wait=5)
        self.assertEqual(options.id, "1234")
        self.assertEqual(options.prefix, "darling")
        self.assertEqual(options.owners, {"42", "7"})
        self.assertIsInstance(options.wait, float)

    def testOwnersAreReadOnly(self):
        options = Options("1234", owners=["42"])
        options.owners.add("7")
        self.assertEqual(options.owners, {"42"})

    def testWaitMayBeDisabled(self):
        self.assertIsNone(Options("1234", wait=None).wait)

    def testRejectsMalformedIdentity(self):
        with self.assertRaises(TypeError):
            Options(1234)
        with self.assertRaises(ValueError):
            Options("  ")
        with self.assertRaises(ValueError):
            Options("1234", prefix="")
        with self.assertRaises(TypeError):
            Options("1234", owners="42")
        with self.assertRaises(ValueError):
            Options("1234", owners=["42", " "])

    def testRejectsMalformedPrompting(self):
        with self.assertRaises(TypeError):
            Options("1234", prompt_limit=True)
        with self.assertRaises(TypeError):
            Options("1234", prompt_limit=1.5)
        with self.assertRaises(ValueError):
            Options("1234", prompt_limit=-1)
        with self.assertRaises(ValueError):
            Options("1234", wait=0)
        with self.assertRaises(TypeError):
            Options("1234", wait="soon")

    def testRepr(self):
        self.assertTrue(repr(Options("1234")).startswith("options(id='1234'"))


class TestOptionsFromEnviron(TestCase):
    def testReadsEveryVariable(self):
        options = Options.from_environ({
            "HERALD_ID": "1234",
            "HERALD_PREFIX": "darling",
            "HERALD_OWNERS": "42, 7,,",
            "HERALD_PROMPT_LIMIT": "2",
            "HERALD_WAIT": "none",
            "HERALD_MENTIONS": "off",
        })
        self.assertEqual(options.prefix, "darling")
        self.assertEqual(options.owners, {"42", "7"})
        self.assertEqual(options.prompt_limit, 2)
        self.assertIsNone(options.wait)
        self.assertFalse(options.mentions)

    def testDefaultsApplyWhenUnset(self):
        options = Options.from_environ({"HERALD_ID": "1234"})
        self.assertEqual(options.prefix, "=")
        self.assertEqual(options.wait, 30.0)

    def testCustomPrefix(self):
        options = Options.from_environ({"BOT_ID": "1", "BOT_WAIT": "2.5"}, prefix="BOT_")
        self.assertEqual(options.id, "1")
        self.assertEqual(options.wait, 2.5)

    def testMissingIdRaisesKeyError(self):
        with self.assertRaises(KeyError):
            Options.from_environ({})

    def testBadValuesRaiseValueError(self):
        with self.assertRaises(ValueError):
            Options.from_environ({"HERALD_ID": "1", "HERALD_MENTIONS": "maybe"})
        with self.assertRaises(ValueError):
            Options.from_environ({"HERALD_ID": "1", "HERALD_PROMPT_LIMIT": "lots"})


if __name__ == "__main__":
    unittest.main()
