"""
Faults module behavioral tests (codes, hierarchy, rich rendering, report).

Scope
- Validate the fault hierarchy and the stable FaultCode values.
- Validate __rich__ output (header, message, hint, panel) and __replace__.
- Validate report() printing to the console and rejecting foreign exceptions.

Conventions
- Test method names follow CamelCase per project convention.
- Rendering is captured with a recording rich Console; no terminal is needed.
"""

import unittest
from unittest import TestCase, mock

from rich.console import Console
from rich.panel import Panel

from herald import faults
from herald.faults import (
    AliasConflictError,
    ArgumentOrderError,
    ConfigurationError,
    FaultCode,
    HeraldException,
    InvariantError,
    UnparsableValueError,
    report,
)


def render(renderable):
    console = Console(record=True, width=120, color_system=None)
    console.print(renderable)
    return console.export_text()


class TestFaultCodes(TestCase):
    def testCodesAreGroupedByDomain(self):
        self.assertEqual(FaultCode.ARGUMENT_ORDER, 21101)
        self.assertEqual(FaultCode.UNPARSABLE_VALUE, 24101)
        self.assertTrue(all(21100 < code < 21200 for code in FaultCode if code.name != "UNPARSABLE_VALUE"))

    def testNormalizeFallsBackToNumber(self):
        self.assertEqual(FaultCode.ALIAS_CONFLICT.normalize(), "21104")

    def testNormalizeHonoursHostCodes(self):
        main = __import__("__main__")
        with mock.patch.object(main, "__codes__", {FaultCode.ALIAS_CONFLICT: "E-ALIAS"}, create=True):
            self.assertEqual(FaultCode.ALIAS_CONFLICT.normalize(), "E-ALIAS")


class TestHierarchy(TestCase):
    def testConfigurationFaults(self):
        self.assertTrue(issubclass(ArgumentOrderError, ConfigurationError))
        self.assertTrue(issubclass(AliasConflictError, HeraldException))

    def testInvariantFaults(self):
        self.assertTrue(issubclass(UnparsableValueError, InvariantError))
        self.assertFalse(issubclass(UnparsableValueError, ConfigurationError))

    def testMessageAndOptions(self):
        fault = ArgumentOrderError("bad order", code=FaultCode.ARGUMENT_ORDER, argument="count")
        self.assertEqual(str(fault), "bad order")
        self.assertEqual(fault.options["argument"], "count")
        with self.assertRaises(TypeError):
            fault.options["argument"] = "other"

    def testReplaceMergesOptions(self):
        fault = AliasConflictError("clash", code=FaultCode.ALIAS_CONFLICT)
        copy = fault.__replace__(fancy=True)
        self.assertIsInstance(copy, AliasConflictError)
        self.assertEqual(copy.message, "clash")
        self.assertTrue(copy.options["fancy"])
        self.assertEqual(copy.options["code"], FaultCode.ALIAS_CONFLICT)


class TestRendering(TestCase):
    def testHeaderMessageAndHint(self):
        fault = ArgumentOrderError(
            "required argument 'b' follows optional argument 'a'",
            title="argument order",
            code=FaultCode.ARGUMENT_ORDER,
            hint="give it a default",
        )
        text = render(fault)
        self.assertIn("[ herald — 21101 | Argument Order ]", text)
        self.assertIn("required argument 'b' follows optional argument 'a'", text)
        self.assertIn("→ give it a default", text)

    def testTitleDefaultsToClassName(self):
        self.assertIn("| Invarianterror ]", render(InvariantError("boom")))

    def testFancyUsesPanel(self):
        fault = InvariantError("boom", fancy=True)
        self.assertIsInstance(fault.__rich__(), Panel)


class TestReport(TestCase):
    def testReportPrintsToConsole(self):
        console = Console(record=True, width=120, color_system=None)
        with mock.patch.object(faults, "console", console):
            report(InvariantError("boom", code=FaultCode.UNPARSABLE_VALUE), colorful=False)
        self.assertIn("boom", console.export_text())

    def testReportRejectsForeignExceptions(self):
        with self.assertRaises(TypeError):
            report(ValueError("nope"))


if __name__ == "__main__":
    unittest.main()
