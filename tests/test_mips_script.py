#!/usr/bin/env python3

"""
test_mips_script.py - Tests for generated MIPS32 (PIC32) linker scripts
"""

import re
import unittest
from dataclasses import replace

from ldgen.device import VectorTable
from ldgen.linker.builder import ScriptBuilder, canonical_regions
from ldgen.linker.exceptions import RegionBindingError
from ldgen.linker.mips import Mips32Profile
from ldgen.linker.region import Access

from device_factory import make_pic32mm, make_pic32mx, make_pic32mz, make_settings


def memory_names(script):
    match = re.search(r"^MEMORY\n\{\n(.*?)^\}\n", script, re.MULTILINE | re.DOTALL)
    return [line.split()[0] for line in match.group(1).splitlines()]


def region_of(script, header):
    """Region the output section starting with header is placed in"""
    start = script.index(header)
    match = re.compile(r"^  \} > (\S+)$", re.MULTILINE).search(script, start)
    return match.group(1)


class Mips32ScriptTestCase(unittest.TestCase):

    def render(self, device, **settings):
        return ScriptBuilder(Mips32Profile(), "unused", make_settings(**settings)).render(device)


class TestPic32mxScript(Mips32ScriptTestCase):
    """Large PIC32MX: no cache, fixed vector offsets, kseg1 data memory"""

    def setUp(self):
        self.script = self.render(make_pic32mx())

    def test_memory_command_sorted(self):
        self.assertEqual(memory_names(self.script), [
            "kseg0_program_mem", "exception_mem", "kseg0_boot_mem", "kseg1_data_mem",
            "SFRs", "kseg1_boot_mem", "debug_exec_mem",
            "config_DEVCFG3", "config_DEVCFG2", "config_DEVCFG1", "config_DEVCFG0",
        ])

    def test_memory_lines(self):
        self.assertIn("  kseg0_program_mem               (rx) : ORIGIN = 0x9D000000, LENGTH = 0x80000\n",
                      self.script)
        self.assertIn("  kseg1_data_mem                  (w!x) : ORIGIN = 0xA0000000, LENGTH = 0x20000\n",
                      self.script)
        self.assertIn("  config_DEVCFG0                   : ORIGIN = 0xBFC02FFC, LENGTH = 0x4\n",
                      self.script)

    def test_preamble(self):
        self.assertIn('OUTPUT_FORMAT("elf32-tradlittlemips")\n', self.script)
        self.assertIn("ENTRY(_reset)\n", self.script)
        self.assertIn("PROVIDE(_min_stack_size = 0x400);\n", self.script)
        self.assertIn("PROVIDE(_min_heap_size = 0);\n", self.script)
        self.assertIn("PROVIDE(_vector_spacing = 0x0001);\n", self.script)
        self.assertIn("PROVIDE(_ebase_address = 0x9D000000);\n", self.script)
        self.assertIn("_RESET_ADDR                    = 0xBFC00000;\n", self.script)
        self.assertIn("_GEN_EXCPT_ADDR                = _ebase_address + 0x180;\n", self.script)
        self.assertLess(self.script.index("ENTRY(_reset)"), self.script.index("MEMORY"))

    def test_config_sections_before_main_sections(self):
        config = self.script.index(".config_DEVCFG0 : {")
        self.assertLess(config, self.script.index(".reset _RESET_ADDR :"))
        self.assertEqual(self.script.count("KEEP(*(.config_DEVCFG"), 4)
        self.assertEqual(region_of(self.script, ".config_DEVCFG2 : {"), "config_DEVCFG2")

    def test_boot_and_exception_sections(self):
        self.assertEqual(region_of(self.script, ".reset _RESET_ADDR :"), "kseg1_boot_mem")
        self.assertEqual(region_of(self.script, ".bev_excpt _BEV_EXCPT_ADDR :"), "kseg1_boot_mem")
        self.assertEqual(region_of(self.script, ".dbg_excpt _DBG_EXCPT_ADDR (NOLOAD) :"),
                         "kseg1_boot_mem")
        self.assertEqual(region_of(self.script, ".app_excpt _GEN_EXCPT_ADDR :"), "exception_mem")
        self.assertNotIn(".cache_init", self.script)
        self.assertNotIn(".simple_tlb_refill_excpt", self.script)

    def test_fixed_offset_dispatch_stubs(self):
        self.assertNotIn(".vectors _ebase_address", self.script)
        self.assertIn(".vector_dispatch_0 _ebase_address + 0x200 + ((_vector_spacing << 5) * 0) :",
                      self.script)
        self.assertIn(".vector_dispatch_63 _ebase_address + 0x200 + ((_vector_spacing << 5) * 63) :",
                      self.script)
        self.assertNotIn(".vector_dispatch_64 ", self.script)
        self.assertEqual(self.script.count("LONG(0x03400008)"), 64)
        self.assertEqual(region_of(self.script, ".vector_dispatch_10 "), "exception_mem")
        # Stubs are the last thing in the script
        self.assertGreater(self.script.index(".vector_dispatch_0 "), self.script.index(".debug_info"))

    def test_exception_region_size(self):
        regions = {r.name: r for r in canonical_regions(make_pic32mx())}
        exception_mem = regions["exception_mem"]
        self.assertEqual(exception_mem.start, 0x9D000000)
        self.assertEqual(exception_mem.length, 0x200 + 32 * 64)

    def test_code_and_data_regions(self):
        for header in (".text :", ".init   :", ".ctors   :", ".dtors   :", ".rodata   :",
                       ".sdata2 ALIGN(4) :"):
            self.assertEqual(region_of(self.script, header), "kseg0_program_mem", header)
        for header in (".dbg_data (NOLOAD) :", ".data   :", ".sdata ALIGN(4) :", ".bss     :",
                       ".heap :", ".stack ORIGIN(kseg1_data_mem)"):
            self.assertEqual(region_of(self.script, header), "kseg1_data_mem", header)
        self.assertNotIn("kseg0_data_mem", self.script)

    def test_section_order(self):
        headers = [".reset ", ".bev_excpt ", ".dbg_excpt ", ".app_excpt ", ".text :", ".init ",
                   ".ctors ", ".rodata ", ".dbg_data ", ".data ", ".bss ", ".heap :", ".stack ",
                   ".debug_info ", ".vector_dispatch_0 "]
        positions = [self.script.index(h) for h in headers]
        self.assertEqual(positions, sorted(positions))

    def test_stack_assertion(self):
        self.assertIn('ASSERT(_stack < ORIGIN(kseg1_data_mem) + LENGTH(kseg1_data_mem), '
                      '"Error: Not enough room for stack.");', self.script)

    def test_debug_data_without_fpu_or_dsp(self):
        self.assertNotIn("FPU64", self.script)
        self.assertNotIn("DSPr2", self.script)

    def test_clean_output(self):
        self.assertNotIn("{{", self.script)
        self.assertNotIn("{%", self.script)
        self.assertNotIn("println", self.script)
        self.assertNotIn(".vector_ ", self.script)
        self.assertNotIn("\r", self.script)


class TestPic32mzScript(Mips32ScriptTestCase):
    """PIC32MZ: cache, FPU, variable vector offsets, kseg0 data memory"""

    def setUp(self):
        self.script = self.render(make_pic32mz())

    def test_memory_command_sorted(self):
        self.assertEqual(memory_names(self.script), [
            "kseg0_data_mem", "kseg0_program_mem", "kseg0_boot_mem", "kseg1_boot_mem",
            "kseg1_boot_mem_4B0", "config_DEVCFG0", "kseg2_EBI_MEM", "kseg3_EBI_MEM",
        ])

    def test_cache_sections(self):
        self.assertEqual(region_of(self.script, ".cache_init :"), "kseg1_boot_mem_4B0")
        # No exception_mem on variable-offset devices
        self.assertEqual(region_of(self.script, ".simple_tlb_refill_excpt "), "kseg0_program_mem")
        self.assertEqual(region_of(self.script, ".cache_err_excpt "), "kseg0_program_mem")
        self.assertEqual(region_of(self.script, ".app_excpt "), "kseg0_program_mem")
        self.assertLess(self.script.index(".dbg_excpt "), self.script.index(".cache_init :"))
        self.assertLess(self.script.index(".cache_err_excpt "), self.script.index(".app_excpt "))

    def test_variable_offset_vectors(self):
        self.assertEqual(region_of(self.script, ".vectors _ebase_address + 0x200 :"),
                         "kseg0_program_mem")
        self.assertIn("    KEEP(*(.vector_213))\n", self.script)
        self.assertIn("    __vector_offset_0 = (SIZEOF(.vector_0) > 0 ? "
                      "(. - _ebase_address - SIZEOF(.vector_0)) : __vector_offset_default);\n",
                      self.script)
        self.assertNotIn(".vector_214", self.script)
        self.assertIn('ASSERT(__vector_offset_default < 256K, "Error: Vector offset too large.")',
                      self.script)
        self.assertNotIn("vector_dispatch", self.script)
        self.assertLess(self.script.index(".app_excpt "), self.script.index(".vectors "))
        self.assertLess(self.script.index(".vectors "), self.script.index(".text :"))

    def test_data_in_kseg0(self):
        self.assertEqual(region_of(self.script, ".data   :"), "kseg0_data_mem")
        self.assertEqual(region_of(self.script, ".stack ORIGIN(kseg0_data_mem)"), "kseg0_data_mem")

    def test_debug_data_with_fpu(self):
        dbg = self.script[self.script.index(".dbg_data"):self.script.index("} > kseg0_data_mem")]
        self.assertIn("FPU64", dbg)
        self.assertNotIn("DSPr2", dbg)

    def test_persist_is_cache_line_aligned(self):
        persist = self.script[self.script.index(".persist (NOLOAD) :"):]
        persist = persist[:persist.index("} >")]
        self.assertIn(". = ALIGN(16) ;", persist)

    def test_config_register_in_kseg1(self):
        self.assertIn("  config_DEVCFG0                   : ORIGIN = 0xBFC0FFCC, LENGTH = 0x4\n",
                      self.script)


class TestMicroMipsScript(Mips32ScriptTestCase):
    """microMIPS-only PIC32MM uses short dispatch stubs"""

    def test_stub_size(self):
        regions = {r.name: r for r in canonical_regions(make_pic32mm())}
        self.assertEqual(regions["exception_mem"].length, 0x200 + 8 * 100)
        self.assertEqual(regions["exception_mem"].access, Access.NONE)

    def test_stubs(self):
        script = self.render(make_pic32mm())
        self.assertIn(".vector_dispatch_99 _ebase_address + 0x200 + ((_vector_spacing << 3) * 99) :",
                      script)
        self.assertEqual(script.count("LONG(0xD4000000"), 100)
        self.assertNotIn("LONG(0x03400008)", script)

    def test_small_boot_flash_layout(self):
        names = memory_names(self.render(make_pic32mm()))
        self.assertIn("debug_exec_mem", names)
        self.assertNotIn("kseg1_boot_mem_4B0", names)


class TestMips32Variants(Mips32ScriptTestCase):

    def test_ebase_from_vector_table(self):
        device = replace(make_pic32mx(), vectors=VectorTable(last_vector_number=63,
                                                             variable_offsets=False,
                                                             ebase_address=0x9FC01000))
        script = self.render(device)
        self.assertIn("PROVIDE(_ebase_address = 0x9FC01000);", script)
        regions = {r.name: r for r in canonical_regions(device)}
        self.assertEqual(regions["exception_mem"].start, 0x9FC01000)

    def test_missing_vector_table_means_variable_offsets(self):
        script = self.render(replace(make_pic32mz(), vectors=None))
        self.assertIn(".vectors _ebase_address + 0x200 :", script)
        self.assertIn("KEEP(*(.vector_0))", script)
        self.assertNotIn("KEEP(*(.vector_1))", script)

    def test_dspr2_reservation(self):
        script = self.render(replace(make_pic32mz(), has_dspr2=True))
        self.assertIn("DSPr2", script)

    def test_missing_program_flash(self):
        device = make_pic32mx()
        device = replace(device, regions=tuple(r for r in device.regions if r.name != "code"))
        with self.assertRaises(RegionBindingError) as ctx:
            self.render(device)
        self.assertIn("kseg0_program_mem", str(ctx.exception))

    def test_missing_data_memory(self):
        device = make_pic32mx()
        device = replace(device, regions=tuple(r for r in device.regions
                                               if r.name != "kseg1_data_mem"))
        with self.assertRaises(RegionBindingError) as ctx:
            self.render(device)
        self.assertIn("kseg1_data_mem", str(ctx.exception))

    def test_one_region_per_config_register(self):
        device = make_pic32mx()
        regions = canonical_regions(device)
        self.assertEqual(sum(1 for r in regions if r.name.startswith("config_")), 4)


if __name__ == '__main__':
    unittest.main()
