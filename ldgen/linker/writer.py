#!/usr/bin/env python3

"""
writer.py - Text buffer for one linker script

ScriptWriter collects the script in memory so nothing reaches the output
file until the whole script has been produced. It knows how to write the
pieces shared by every architecture: the license header, wrapped C
comments, the MEMORY command and the config register SECTIONS command.
"""

import io
import textwrap
from datetime import date
from typing import Iterable, List, Optional

from .region import MemoryRegion

DEFAULT_COMMENT_WIDTH = 100
MAX_COMMENT_INDENT = 60

GENERATOR_LICENSE = """\
Redistribution and use in source and binary forms, with or without modification, are permitted \
provided that the following conditions are met:

* Redistributions of source code must retain the above copyright notice, this
  list of conditions and the following disclaimer.

* Redistributions in binary form must reproduce the above copyright notice,
  this list of conditions and the following disclaimer in the documentation
  and/or other materials provided with the distribution.

* Neither the name of the copyright holder nor the names of its
  contributors may be used to endorse or promote products derived from
  this software without specific prior written permission.

THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR \
IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE IMPLIED WARRANTIES OF MERCHANTABILITY AND \
FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR \
CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL \
DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, \
DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER \
IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT \
OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE."""

VENDOR_ATTRIBUTION = (
    "The section layout follows the default linker scripts shipped with Microchip "
    "Technology's XC32 toolchain, which are distributed under a BSD-style license by "
    "Microchip Technology Inc. and its subsidiaries."
)


def wrap_comment_text(text: str, width: int) -> List[str]:
    """Wrap text to the given width, keeping explicit line breaks"""
    lines: List[str] = []
    for paragraph in text.splitlines():
        if not paragraph.strip():
            lines.append("")
            continue
        # Continuation lines keep the indent of list items
        indent = paragraph[:len(paragraph) - len(paragraph.lstrip())]
        lines.extend(textwrap.wrap(paragraph, width=max(width, 1), subsequent_indent=indent))
    return lines


def format_c_comment(text: str, indent: int = 0,
                     width: int = DEFAULT_COMMENT_WIDTH) -> str:
    """Format text as a multi-line C comment block.

    The block is indented by 'indent' spaces (at most 60) and wrapped so that
    no line exceeds 'width' characters.

        /* First line
         * second line
         */
    """
    indent = min(max(indent, 0), MAX_COMMENT_INDENT)
    pad = " " * indent
    # 3 characters for the "/* " or " * " lead-in
    lines = wrap_comment_text(text, width - indent - 3) or [""]

    out = [f"{pad}/* {lines[0]}".rstrip()]
    out.extend(f"{pad} * {line}".rstrip() for line in lines[1:])
    out.append(f"{pad} */")
    return "\n".join(out)


class ScriptWriter:
    """Accumulates linker script text with Unix line endings"""

    def __init__(self, comment_width: int = DEFAULT_COMMENT_WIDTH):
        self._buffer = io.StringIO()
        self.comment_width = comment_width

    def println(self, line: str = "") -> None:
        self._buffer.write(line)
        self._buffer.write("\n")

    def write(self, text: str) -> None:
        """Write a block of text, adding a final newline if it has none"""
        self._buffer.write(text)
        if text and not text.endswith("\n"):
            self._buffer.write("\n")

    def comment(self, text: str, indent: int = 0) -> None:
        self.println(format_c_comment(text, indent, self.comment_width))

    def getvalue(self) -> str:
        return self._buffer.getvalue()

    def write_license_header(self, tool_name: str, generated_on: Optional[date] = None) -> None:
        """Write the attribution and license comment that opens every script"""
        generated_on = generated_on or date.today()
        header = (
            f"Generated by {tool_name} on {generated_on.strftime('%d %b %Y')}.\n\n"
            f"Copyright (c) {generated_on.year}, the {tool_name} authors\n"
            "All rights reserved.\n\n"
            f"{GENERATOR_LICENSE}\n\n"
            "                                               ******\n\n"
            f"{VENDOR_ATTRIBUTION}"
        )
        self.comment(header)
        self.println()

    def write_memory_command(self, regions: Iterable[MemoryRegion]) -> None:
        """Write a MEMORY command listing the regions in the given order"""
        self.println("MEMORY")
        self.println("{")
        for region in regions:
            self.println("  " + region.format_memory_line())
        self.println("}")
        self.println()

    def write_config_sections(self, section_names: Iterable[str]) -> None:
        """Write a SECTIONS command holding one kept section per config register.

        Each section is routed to the region of the same name. Nothing is
        written when there are no config registers.
        """
        section_names = list(section_names)
        if not section_names:
            return

        self.println("SECTIONS")
        self.println("{")
        for name in section_names:
            self.println(f"  .{name} : {{")
            self.println(f"    KEEP(*(.{name}))")
            self.println(f"  }} > {name}")
            self.println()
        self.println("}")
        self.println()
