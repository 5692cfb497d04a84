"""Pydantic request and response models for the StitchViz API.

These models define the JSON schema for every API endpoint.  FastAPI uses
them for automatic request validation, serialisation, and OpenAPI
documentation generation.

JSON field names are camelCase to match the front end
(``projectDescription``); Python attributes are snake_case.

Models
------
ColorCount
    The three palette-size categories offered by the form.
GenerateRequest
    Payload for ``POST /generate`` and ``POST /prompt/compile``.
GenerateResponse
    Successful ``POST /generate`` result: the generated images as data URIs.
PromptPreviewResponse
    Result of ``POST /prompt/compile``.
ErrorResponse
    Body of every 4xx/5xx response produced by the service.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ColorCount(str, Enum):
    """User-selected palette size."""

    MONOCHROME = "monochrome"
    FEW = "2-4"
    MANY = "5-7"


class GenerateRequest(BaseModel):
    """Request body for the ``POST /generate`` endpoint.

    Attributes:
        project_description: Free-text description of the crochet item
            (JSON ``projectDescription``).  Must be non-empty.
        color_vibe: Free-text description of the colour mood
            (JSON ``colorVibe``).  Must be non-empty.
        color_count: Palette size category (JSON ``colorCount``).
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    project_description: str = Field(
        ...,
        alias="projectDescription",
        min_length=1,
        description="Description of the crochet project (e.g. 'amigurumi fox').",
    )
    color_vibe: str = Field(
        ...,
        alias="colorVibe",
        min_length=1,
        description="Overall colour mood (e.g. 'warm autumn').",
    )
    color_count: ColorCount = Field(
        ...,
        alias="colorCount",
        description="Palette size: 'monochrome', '2-4', or '5-7'.",
    )


class GenerateResponse(BaseModel):
    """Response body for a successful ``POST /generate``.

    Attributes:
        images: ``data:image/png;base64,...`` URIs in provider order.
    """

    model_config = ConfigDict(frozen=True)

    images: list[str] = Field(
        ...,
        description="Generated images as PNG data URIs.",
    )


class PromptPreviewResponse(BaseModel):
    """Response body for ``POST /prompt/compile``."""

    prompt: str = Field(..., description="The prompt that would be sent to the provider.")


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str = Field(..., description="Human-readable error message.")
