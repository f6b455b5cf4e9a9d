#!/usr/bin/env python3

"""
sections.py - Render SECTIONS command blocks from Jinja2 templates

Each architecture describes its SECTIONS command as an ordered list of
SectionStep objects. A step names a template under ldgen/templates and the
memory regions its output sections are routed to. Every bound region is
checked against the registry before anything is rendered, so a script never
routes a section to a region missing from its MEMORY command.
"""

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, Optional, Tuple, Union

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .writer import DEFAULT_COMMENT_WIDTH, format_c_comment

if TYPE_CHECKING:
    from .profile import GenerationContext

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"

RegionBinding = Union[str, Callable[["GenerationContext"], str]]


@lru_cache(maxsize=None)
def get_template_environment(comment_width: int = DEFAULT_COMMENT_WIDTH) -> Environment:
    """Jinja2 environment used for all linker script templates"""
    env = Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["c_comment"] = lambda text, indent=0: format_c_comment(text, indent, comment_width)
    env.filters["hex8"] = lambda value: f"0x{value:08X}"
    env.filters["size"] = lambda value: f"0x{value:X}" if value else "0"
    return env


def render_template(template_name: str, context: Dict[str, Any],
                    comment_width: int = DEFAULT_COMMENT_WIDTH) -> str:
    """Render one linker script template"""
    template = get_template_environment(comment_width).get_template(template_name)
    return template.render(**context)


@dataclass(frozen=True)
class SectionStep:
    """One block of the SECTIONS command.

    'regions' maps template variable names to region names. A binding may be
    a callable that picks the region from the generation context, for
    instance to fall back to another region when the preferred one does not
    exist on a device.
    """

    template: str
    regions: Dict[str, RegionBinding] = field(default_factory=dict)
    when: Callable[["GenerationContext"], bool] = lambda ctx: True


def resolve_bindings(ctx: "GenerationContext", step: SectionStep) -> Dict[str, str]:
    """Resolve and check the region names a step routes sections to.

    Raises:
        RegionBindingError: If a bound region is not in the registry
    """
    resolved = {}
    for variable, binding in step.regions.items():
        name = binding(ctx) if callable(binding) else binding
        ctx.registry.require(name)
        resolved[variable] = name
    return resolved


def emit_sections(ctx: "GenerationContext", steps: Iterable[SectionStep],
                  extra: Optional[Dict[str, Any]] = None) -> None:
    """Render the given steps, in order, into the context's writer.

    All bindings are checked before any text is written.
    """
    active: Tuple[Tuple[SectionStep, Dict[str, str]], ...] = tuple(
        (step, resolve_bindings(ctx, step)) for step in steps if step.when(ctx)
    )

    base_context = {
        "device": ctx.device,
        "settings": ctx.settings,
        "registry": ctx.registry,
    }
    base_context.update(extra or {})

    for step, bindings in active:
        logger.debug("Rendering %s for %s", step.template, ctx.device.name)
        ctx.writer.write(render_template(step.template, {**base_context, **bindings},
                                         ctx.settings.comment_width))
