"""Prompt compilation for crochet mockup generation.

The prompt is a fixed template with three variable parts: the user's project
description, the user's colour vibe, and a fixed phrase chosen by the
selected colour count.

Template::

    A highly detailed image of a handmade crochet project. The project is
    described as: [description]. The overall color vibe is: [vibe]. Please
    visualize the crochet item [colour phrase], with realistic yarn textures
    such as cotton, chenille, or wool. The background should be minimal,
    studio-lit, and clean.

Usage
-----
::

    compiled = build_prompt(
        project_description="amigurumi fox",
        color_vibe="warm autumn",
        color_count="2-4",
    )
"""

from __future__ import annotations

from stitchviz.api.models import ColorCount
from stitchviz.core.errors import PromptBuildError

# ---------------------------------------------------------------------------
# Colour count phrases.
# Constants rather than configuration: they are part of the prompt template.
# ---------------------------------------------------------------------------

COLOR_COUNT_PHRASES: dict[ColorCount, str] = {
    ColorCount.MONOCHROME: "in a single consistent color palette",
    ColorCount.FEW: "using 2 to 4 complementary colors",
    ColorCount.MANY: "with a bold mix of 5 to 7 different colors",
}

_PROMPT_TEMPLATE = (
    "A highly detailed image of a handmade crochet project. "
    "The project is described as: {project_description}. "
    "The overall color vibe is: {color_vibe}. "
    "Please visualize the crochet item {color_phrase}, with realistic yarn textures "
    "such as cotton, chenille, or wool. "
    "The background should be minimal, studio-lit, and clean."
)


def color_phrase_for(color_count: ColorCount | str | None) -> str:
    """Return the fixed palette phrase for *color_count*.

    Raises:
        PromptBuildError: If *color_count* is missing or not one of the
            three known categories.
    """
    try:
        return COLOR_COUNT_PHRASES[ColorCount(color_count)]
    except ValueError as exc:
        raise PromptBuildError(f"Unsupported colorCount: {color_count!r}") from exc


def build_prompt(
    project_description: str,
    color_vibe: str,
    color_count: ColorCount | str,
) -> str:
    """Compile the image-generation prompt.

    Args:
        project_description: Free-text description of the crochet item.
        color_vibe: Free-text description of the colour mood.
        color_count: One of ``"monochrome"``, ``"2-4"``, ``"5-7"`` (or the
            matching :class:`ColorCount` member).

    Returns:
        The compiled prompt.  The same input always yields the same string.

    Raises:
        PromptBuildError: If *color_count* is missing or unmapped.  There is
            no default palette.
    """
    return _PROMPT_TEMPLATE.format(
        project_description=project_description,
        color_vibe=color_vibe,
        color_phrase=color_phrase_for(color_count),
    )
