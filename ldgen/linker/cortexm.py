"""Linker script profile for ARM Cortex-M devices."""

from ..device import Architecture
from .classifier import CORTEX_M_RULES
from .profile import TOOL_NAME, GenerationContext, ScriptProfile
from .sections import SectionStep, emit_sections, render_template

CODE_REGION = "rom"
DATA_REGION = "ram"

# Order of the blocks in the main SECTIONS command
CORTEX_M_SECTIONS = (
    SectionStep("cortexm/vectors.ld.j2", {"rom": CODE_REGION}),
    SectionStep("cortexm/text.ld.j2", {"rom": CODE_REGION}),
    SectionStep("cortexm/exidx.ld.j2", {"rom": CODE_REGION}),
    SectionStep("cortexm/data.ld.j2", {"ram": DATA_REGION}),
    SectionStep("cortexm/runtime.ld.j2", {"ram": DATA_REGION}),
    SectionStep("cortexm/debug.ld.j2"),
)


class CortexMProfile(ScriptProfile):
    """Scripts for Cortex-M parts, laid out like the Atmel/XC32 ones.

    Code goes to "rom", everything else to "ram". Devices with a cache get
    a cache-line aligned block for uncached data at the start of .relocate.
    """

    architecture = Architecture.ARM
    rules = CORTEX_M_RULES
    output_subdir = "cortex-m/lib/proc"

    def write_script(self, ctx: GenerationContext) -> None:
        writer = ctx.writer
        settings = ctx.settings

        ctx.registry.require(CODE_REGION)
        ctx.registry.require(DATA_REGION)

        writer.write_license_header(TOOL_NAME, settings.generated_on)
        writer.write(render_template("cortexm/preamble.ld.j2", {"settings": settings},
                                     settings.comment_width))
        writer.write_memory_command(ctx.registry.sorted_view())
        writer.write(render_template("cortexm/region_symbols.ld.j2",
                                     {"rom": CODE_REGION, "ram": DATA_REGION},
                                     settings.comment_width))
        self.write_config_sections(ctx)

        writer.println("SECTIONS")
        writer.println("{")
        emit_sections(ctx, CORTEX_M_SECTIONS)
        writer.println("}")
