"""
Argument types behavioral tests (built-ins, unions, registry catalog).

Scope
- Validate the boolean, integer, float and string types, including one_of and
  min/max messages taken from the declaring argument.
- Validate union types: priority parsing, empty checks, joined soft errors,
  unknown constituents and the fatal parse path.
- Validate type registration (upsert, duplicates) and union caching.

Conventions
- Test method names follow CamelCase per project convention.
- Arguments are real Argument declarations bound to a test client.
"""

import unittest
from unittest import IsolatedAsyncioTestCase, TestCase

from herald import (
    Argument,
    ArgumentType,
    BooleanType,
    DuplicateTypeError,
    UnionType,
    UnknownTypeError,
    UnparsableValueError,
    Verdict,
    verdict,
)

from support import make_client, message


class TestVerdict(TestCase):
    def testNormalization(self):
        self.assertEqual(verdict(True), Verdict(True))
        self.assertEqual(verdict(None), Verdict(False))
        self.assertEqual(verdict("too long"), Verdict(False, "too long"))
        self.assertIs(verdict(same := Verdict(False, "x")), same)


class TestBuiltinTypes(TestCase):
    def setUp(self):
        self.client, _ = make_client()
        self.types = self.client.registry.types
        self.message = message("")

    def argument(self, **options):
        return Argument(self.client, key="value", **options)

    def testBuiltinsAreRegistered(self):
        self.assertEqual(set(self.types), {"boolean", "integer", "float", "string"})

    def testBoolean(self):
        boolean = self.types["boolean"]
        for word in ("YES", "on", "+", "Enabled"):
            self.assertTrue(boolean.validate(word, self.message))
            self.assertIs(boolean.parse(word, self.message), True)
        for word in ("no", "OFF", "-", "0"):
            self.assertIs(boolean.parse(word, self.message), False)
        self.assertFalse(boolean.validate("maybe", self.message))
        with self.assertRaises(UnparsableValueError):
            boolean.parse("maybe", self.message)

    def testIntegerBounds(self):
        integer = self.types["integer"]
        argument = self.argument(type="integer", min=1, max=10)
        self.assertIs(integer.validate("5", self.message, argument), True)
        self.assertEqual(integer.validate("0", self.message, argument), "Please enter a number above or exactly 1.")
        self.assertEqual(integer.validate("11", self.message, argument), "Please enter a number below or exactly 10.")
        self.assertFalse(integer.validate("five", self.message, argument))
        self.assertFalse(integer.validate("1.5", self.message, argument))
        self.assertEqual(integer.parse(" 7 ", self.message, argument), 7)

    def testNumbersAcceptOnlyPlainDecimals(self):
        integer = self.types["integer"]
        number = self.types["float"]
        self.assertIs(integer.validate("-12", self.message), True)
        self.assertIs(number.validate("+.5", self.message), True)
        self.assertIs(number.validate("3.", self.message), True)
        for value in ("1_000", "٣", "0x10", " "):
            self.assertFalse(integer.validate(value, self.message), value)
            self.assertFalse(number.validate(value, self.message), value)
        for value in ("1e3", "1_0.5", "٣.5", "."):
            self.assertFalse(number.validate(value, self.message), value)

    def testIntegerOneOf(self):
        integer = self.types["integer"]
        argument = self.argument(type="integer", one_of=[1, 2, 3])
        self.assertIs(integer.validate("2", self.message, argument), True)
        self.assertFalse(integer.validate("4", self.message, argument))

    def testFloat(self):
        number = self.types["float"]
        self.assertIs(number.validate("2.5", self.message), True)
        self.assertFalse(number.validate("nan", self.message))
        self.assertFalse(number.validate("inf", self.message))
        self.assertFalse(number.validate("abc", self.message))
        self.assertEqual(number.parse("2.5", self.message), 2.5)

    def testStringLengthMessagesUseLabel(self):
        string = self.types["string"]
        argument = self.argument(type="string", label="title", min=2, max=4)
        self.assertEqual(string.validate("a", self.message, argument), "Please keep the title above or exactly 2 characters.")
        self.assertEqual(string.validate("abcde", self.message, argument), "Please keep the title below or exactly 4 characters.")
        self.assertIs(string.validate("abc", self.message, argument), True)

    def testStringOneOfIsCaseInsensitive(self):
        string = self.types["string"]
        argument = self.argument(type="string", one_of=["Red", "green"])
        self.assertIs(string.validate("RED", self.message, argument), True)
        self.assertFalse(string.validate("blue", self.message, argument))

    def testDefaultEmptiness(self):
        self.assertTrue(self.types["string"].is_empty("", self.message))
        self.assertFalse(self.types["string"].is_empty("x", self.message))

    def testTypeIdsMustBeLowercase(self):
        with self.assertRaises(ValueError):
            BooleanType(self.client, "Boolean")
        with self.assertRaises(TypeError):
            ArgumentType(self.client)


class TestUnionType(IsolatedAsyncioTestCase):
    def setUp(self):
        self.client, _ = make_client()
        self.message = message("")

    async def testUnionPrefersEarlierConstituents(self):
        union = self.client.registry.resolve_type("integer|string")
        self.assertIsInstance(union, UnionType)
        self.assertEqual(await union.parse("42", self.message), 42)
        self.assertEqual(await union.parse("forty", self.message), "forty")

    async def testUnionIsCachedUnderItsId(self):
        union = self.client.registry.resolve_type("integer|boolean")
        self.assertIs(self.client.registry.resolve_type("integer|boolean"), union)
        self.assertIn("integer|boolean", self.client.registry.types)
        self.assertEqual([type.id for type in union.types], ["integer", "boolean"])

    async def testUnionJoinsSoftErrors(self):
        union = self.client.registry.resolve_type("integer|string")
        argument = Argument(self.client, key="value", label="value", type=union, min=5, max=6)
        result = await union.validate("3", self.message, argument)
        self.assertEqual(
            result,
            "Please enter a number above or exactly 5.\nPlease keep the value above or exactly 5 characters.",
        )

    async def testUnionWithoutSoftErrorsIsFalse(self):
        union = self.client.registry.resolve_type("integer|boolean")
        self.assertIs(await union.validate("maybe", self.message), False)

    async def testUnionParseWithoutMatchIsFatal(self):
        union = self.client.registry.resolve_type("integer|boolean")
        with self.assertRaises(UnparsableValueError):
            await union.parse("maybe", self.message)

    async def testUnionEmptyOnlyWhenAllEmpty(self):
        class Never(ArgumentType):
            id = "never"

            def is_empty(self, value, message, argument=None, /):
                return False

        self.client.registry.register_type(Never)
        union = self.client.registry.resolve_type("string|never")
        self.assertFalse(await union.is_empty("", self.message))
        self.assertTrue(await self.client.registry.resolve_type("string|integer").is_empty("", self.message))

    async def testUnionWithUnknownConstituentRaises(self):
        with self.assertRaises(UnknownTypeError):
            self.client.registry.resolve_type("integer|colour")


class TestTypeRegistration(TestCase):
    def setUp(self):
        self.client, _ = make_client()

    def testUnknownTypeRaises(self):
        with self.assertRaises(UnknownTypeError):
            self.client.registry.resolve_type("colour")

    def testSameClassIsUpserted(self):
        first = self.client.registry.types["boolean"]
        second = self.client.registry.register_type(BooleanType)
        self.assertIsNot(first, second)
        self.assertIs(self.client.registry.types["boolean"], second)

    def testDifferentClassWithSameIdRaises(self):
        class Impostor(ArgumentType):
            id = "boolean"

        with self.assertRaises(DuplicateTypeError):
            self.client.registry.register_type(Impostor)

    def testRegisterTypesIn(self):
        registered = self.client.registry.register_types_in("sample_bot.types")
        self.assertEqual([type.id for type in registered], ["color"])
        self.assertIn("color", self.client.registry.types)


if __name__ == "__main__":
    unittest.main()
