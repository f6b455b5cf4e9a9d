"""
ldgen - GNU ld linker script generator for ARM Cortex-M and MIPS32 microcontrollers.
"""

__version__ = "1.0.0"
