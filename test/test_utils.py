"""
Utils module behavioral tests (sentinel, helpers, module globbing).

Scope
- Validate the Unset sentinel: singleton, falsy, sealed, union-friendly.
- Validate coalesce(), rename() (both forms), mirror() copies and settle().
- Validate mglob() against herald's own package tree.

Conventions
- Test method names follow CamelCase per project convention.
"""

import unittest
from unittest import IsolatedAsyncioTestCase, TestCase

from herald.utils import Unset, UnsetType, coalesce, mglob, mirror, rename, settle


class TestUnset(TestCase):
    def testUnsetIsSingleton(self):
        self.assertIs(UnsetType(), Unset)

    def testUnsetIsFalsy(self):
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testUnsetIsSealed(self):
        with self.assertRaises(TypeError):
            class Other(UnsetType):
                pass

    def testUnsetSupportsUnionIsinstance(self):
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertTrue(isinstance("x", str | Unset))
        self.assertFalse(isinstance(1, str | Unset))


class TestHelpers(TestCase):
    def testCoalesceReplacesOnlyUnset(self):
        self.assertEqual(coalesce(Unset, "="), "=")
        self.assertIsNone(coalesce(None, "="))
        self.assertEqual(coalesce(0, 5), 0)
        self.assertEqual(coalesce("", "x"), "")

    def testRenameFunctionForm(self):
        def inner():
            pass

        self.assertIs(rename(inner, "outer"), inner)
        self.assertEqual(inner.__name__, "outer")
        self.assertEqual(inner.__qualname__, "outer")

    def testRenameDecoratorForm(self):
        @rename("renamed")
        def inner():
            pass

        self.assertEqual(inner.__name__, "renamed")

    def testRenameRejectsBadArguments(self):
        with self.assertRaises(TypeError):
            rename(42, "name")
        with self.assertRaises(TypeError):
            rename(print, 42)
        with self.assertRaises(TypeError):
            rename()

    def testMirrorServesCopies(self):
        class Holder:
            items = mirror("items")

            def __init__(self):
                self._items = ("a", "b")

        holder = Holder()
        items = holder.items
        items.append("c")
        self.assertEqual(holder.items, ["a", "b"])

    def testMirrorIsReadOnly(self):
        class Holder:
            value = mirror("value")

            def __init__(self):
                self._value = 1

        with self.assertRaises(AttributeError):
            Holder().value = 2


class TestSettle(IsolatedAsyncioTestCase):
    async def testSettlePassesPlainValues(self):
        self.assertEqual(await settle(3), 3)

    async def testSettleAwaitsCoroutines(self):
        async def produce():
            return "done"

        self.assertEqual(await settle(produce()), "done")


class TestMglob(TestCase):
    def testConcreteNameIsReturnedAsIs(self):
        self.assertEqual(mglob("json"), ["json"])

    def testSingleStarListsDirectChildren(self):
        names = mglob("herald.*")
        self.assertIn("herald.argtypes", names)
        self.assertIn("herald.dispatcher", names)
        self.assertNotIn("herald", names)
        self.assertEqual(names, sorted(names))

    def testDoubleStarIncludesThePackageItself(self):
        names = mglob("herald.**")
        self.assertIn("herald", names)
        self.assertIn("herald.registry", names)

    def testCharacterClasses(self):
        names = mglob("herald.[a-c]*")
        self.assertIn("herald.client", names)
        self.assertNotIn("herald.utils", names)

    def testUnimportablePrefixYieldsNothing(self):
        self.assertEqual(mglob("no_such_package_anywhere.*"), [])

    def testPatternMustStartConcrete(self):
        with self.assertRaises(ValueError):
            mglob("*.commands")
        with self.assertRaises(ValueError):
            mglob("   ")
        with self.assertRaises(TypeError):
            mglob(42)


if __name__ == "__main__":
    unittest.main()
