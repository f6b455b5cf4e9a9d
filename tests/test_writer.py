#!/usr/bin/env python3

"""
test_writer.py - Unit tests for script text output helpers
"""

import unittest
from datetime import date

from ldgen.linker.writer import ScriptWriter, format_c_comment


class TestCComments(unittest.TestCase):

    def test_single_line(self):
        self.assertEqual(format_c_comment("Hello"), "/* Hello\n */")

    def test_indent(self):
        self.assertEqual(format_c_comment("Hello", indent=2), "  /* Hello\n   */")

    def test_indent_is_capped(self):
        comment = format_c_comment("x", indent=200)
        self.assertTrue(comment.startswith(" " * 60 + "/* x"))

    def test_lines_fit_width(self):
        text = ("Allocate some space for a stack at the end of memory because the stack grows "
                "downward.  This is just the minimum stack size that will be allowed; the stack "
                "can actually grow larger.")
        for width in (40, 60, 100):
            comment = format_c_comment(text, indent=4, width=width)
            lines = comment.splitlines()
            self.assertGreater(len(lines), 2)
            for line in lines:
                self.assertLessEqual(len(line), width)
            self.assertTrue(lines[0].startswith("    /* "))
            self.assertTrue(all(line.startswith("     * ") for line in lines[1:-1]))
            self.assertEqual(lines[-1], "     */")

    def test_blank_lines_are_kept(self):
        comment = format_c_comment("first\n\nsecond")
        self.assertEqual(comment, "/* first\n *\n * second\n */")


class TestScriptWriter(unittest.TestCase):

    def test_write_adds_missing_newline(self):
        writer = ScriptWriter()
        writer.write("a")
        writer.write("b\n")
        writer.write("")
        self.assertEqual(writer.getvalue(), "a\nb\n")

    def test_license_header(self):
        writer = ScriptWriter()
        writer.write_license_header("ldgen", date(2024, 1, 15))
        text = writer.getvalue()
        self.assertTrue(text.startswith("/* Generated by ldgen on 15 Jan 2024."))
        self.assertIn("Copyright (c) 2024", text)
        self.assertIn("Redistribution and use in source and binary forms", text)
        self.assertIn("Microchip", text)
        self.assertNotIn("http", text)
        self.assertTrue(text.endswith(" */\n\n"))

    def test_config_sections(self):
        writer = ScriptWriter()
        writer.write_config_sections(["config_DEVCFG0", "config_DEVCFG1"])
        self.assertEqual(writer.getvalue(), (
            "SECTIONS\n"
            "{\n"
            "  .config_DEVCFG0 : {\n"
            "    KEEP(*(.config_DEVCFG0))\n"
            "  } > config_DEVCFG0\n"
            "\n"
            "  .config_DEVCFG1 : {\n"
            "    KEEP(*(.config_DEVCFG1))\n"
            "  } > config_DEVCFG1\n"
            "\n"
            "}\n"
            "\n"
        ))

    def test_no_config_sections(self):
        writer = ScriptWriter()
        writer.write_config_sections([])
        self.assertEqual(writer.getvalue(), "")


if __name__ == '__main__':
    unittest.main()
