"""Image generator back ends and registry.

This module provides the single outbound step of the service: sending a
prompt to an image-generation provider and turning what comes back into data
URIs the browser can display directly.

Generator Pattern
-----------------
:class:`ImageGeneratorBase` owns the provider-independent contract:

- exactly :data:`IMAGE_COUNT` square images at :data:`IMAGE_SIZE` are
  requested per call,
- a provider exception, an empty response, or any item without an image
  payload fails the whole batch with :class:`ImageGenerationError` (no
  partial lists),
- each payload is returned as ``data:image/png;base64,<payload>``.

Subclasses only implement :meth:`ImageGeneratorBase._request_payloads`, which
performs the provider call and returns the raw payloads (base64 text or
image bytes, ``None`` for a missing one).

There are no retries and no timeout handling beyond the SDK transport
defaults.  Each call to :meth:`~ImageGeneratorBase.generate_images` makes
exactly one provider request.

Usage Example
-------------
    >>> from stitchviz.core.config import config
    >>> from stitchviz.core.generators import generator_registry
    >>>
    >>> print(generator_registry.list_available())
    ['openai', 'gemini', 'mock']
    >>> generator = generator_registry.instantiate("mock", config)
    >>> images = await generator.generate_images("a crochet fox")
    >>> len(images)
    3
"""

from __future__ import annotations

import base64
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from google import genai
from google.genai import types
from openai import AsyncOpenAI

from stitchviz.core.config import StitchvizConfig
from stitchviz.core.errors import ImageGenerationError

logger = logging.getLogger(__name__)

IMAGE_COUNT = 3
IMAGE_SIZE = "1024x1024"
DATA_URI_PREFIX = "data:image/png;base64,"

# 1x1 PNG squares served by the mock back end.
_PLACEHOLDER_PNGS = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8/5+hHgAHggJ/PchI7wAAAABJRU5ErkJggg==",
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg==",
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg==",
)


def to_data_uri(payload: str | bytes) -> str:
    """Wrap an image payload in a PNG data URI.

    Args:
        payload: Base64 text as returned by JSON APIs, or raw image bytes
            (encoded here).

    Returns:
        ``data:image/png;base64,<payload>``
    """
    if isinstance(payload, bytes):
        payload = base64.b64encode(payload).decode("ascii")
    return f"{DATA_URI_PREFIX}{payload}"


class ImageGeneratorBase(ABC):
    """Abstract base class for all image generator back ends.

    Attributes
    ----------
    name : str
        Registry name of the back end (e.g., "openai")
    description : str
        Brief description of the provider
    config : StitchvizConfig
        Configuration object containing provider settings
    """

    name: str = "base"
    description: str = "Base class for image generators"

    def __init__(self, config: StitchvizConfig) -> None:
        self.config = config
        logger.info("Initialized %s image generator", self.name)

    async def generate_images(self, prompt: str) -> list[str]:
        """Generate a batch of images for *prompt*.

        Args:
            prompt: Fully built natural-language prompt.

        Returns:
            Exactly one data URI per image returned by the provider, in the
            provider's order.

        Raises:
            ImageGenerationError: If the provider call fails, returns no
                data, or returns an item without an image payload.
        """
        try:
            payloads = await self._request_payloads(prompt)
        except ImageGenerationError:
            raise
        except Exception as exc:
            logger.exception("%s provider call failed", self.name)
            raise ImageGenerationError("Failed to generate images") from exc

        if not payloads:
            raise ImageGenerationError("No images generated")

        images: list[str] = []
        for index, payload in enumerate(payloads):
            if not payload:
                logger.error("%s returned image %d without payload", self.name, index)
                raise ImageGenerationError("Missing base64 data in image response")
            images.append(to_data_uri(payload))
        return images

    @abstractmethod
    async def _request_payloads(self, prompt: str) -> Sequence[str | bytes | None]:
        """Call the provider once and return the raw image payloads.

        Returns
        -------
        Sequence[str | bytes | None]
            Base64 text or raw bytes per returned image; ``None`` (or empty)
            where the provider omitted the payload.  An empty sequence means
            the provider returned no data.
        """

    async def aclose(self) -> None:
        """Release provider resources.  Called once on application shutdown."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"


class OpenAIImageGenerator(ImageGeneratorBase):
    """OpenAI Images API back end (``images.generate``)."""

    name = "openai"
    description = "OpenAI Images API"

    def __init__(self, config: StitchvizConfig, client: AsyncOpenAI | None = None) -> None:
        super().__init__(config)
        self._client = client

    def _client_instance(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.config.openai_api_key:
                raise ImageGenerationError(
                    "OpenAI API key is required. Set OPENAI_API_KEY or STITCHVIZ_OPENAI_API_KEY."
                )
            self._client = AsyncOpenAI(api_key=self.config.openai_api_key)
        return self._client

    async def _request_payloads(self, prompt: str) -> list[str | None]:
        response = await self._client_instance().images.generate(
            model=self.config.openai_model,
            prompt=prompt,
            n=IMAGE_COUNT,
            size=IMAGE_SIZE,
        )
        if not response.data:
            return []
        return [item.b64_json for item in response.data]

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()


class GeminiImageGenerator(ImageGeneratorBase):
    """Google Imagen back end via the ``google-genai`` SDK."""

    name = "gemini"
    description = "Google Imagen via google-genai"

    def __init__(self, config: StitchvizConfig, client: genai.Client | None = None) -> None:
        super().__init__(config)
        self._client = client

    def _client_instance(self) -> genai.Client:
        if self._client is None:
            if not self.config.gemini_api_key:
                raise ImageGenerationError(
                    "Gemini API key is required. Set GEMINI_API_KEY or STITCHVIZ_GEMINI_API_KEY."
                )
            self._client = genai.Client(api_key=self.config.gemini_api_key)
        return self._client

    async def _request_payloads(self, prompt: str) -> list[bytes | None]:
        # Imagen renders 1:1 as 1024x1024 PNG.
        response = await self._client_instance().aio.models.generate_images(
            model=self.config.gemini_model,
            prompt=prompt,
            config=types.GenerateImagesConfig(
                number_of_images=IMAGE_COUNT,
                aspect_ratio="1:1",
            ),
        )
        generated = response.generated_images or []
        return [item.image.image_bytes if item.image else None for item in generated]


class MockImageGenerator(ImageGeneratorBase):
    """Offline back end returning placeholder squares; makes no network call."""

    name = "mock"
    description = "Placeholder images for local development"

    async def _request_payloads(self, prompt: str) -> list[str]:
        logger.info("Mock generator received prompt: %s", prompt)
        return list(_PLACEHOLDER_PNGS[:IMAGE_COUNT])


class GeneratorRegistry:
    """Registry for discovering and instantiating image generator back ends."""

    def __init__(self) -> None:
        self._generators: dict[str, type[ImageGeneratorBase]] = {}

    def register(self, generator_class: type[ImageGeneratorBase]) -> type[ImageGeneratorBase]:
        """Register a generator class under its ``name``.

        Usable as a class decorator.

        Raises
        ------
        ValueError
            If a different class is already registered under the same name
        """
        existing = self._generators.get(generator_class.name)
        if existing is not None and existing is not generator_class:
            raise ValueError(f"Image generator '{generator_class.name}' is already registered")
        self._generators[generator_class.name] = generator_class
        logger.debug("Registered image generator: %s", generator_class.name)
        return generator_class

    def instantiate(self, generator_name: str, config: StitchvizConfig) -> ImageGeneratorBase:
        """Create an instance of a registered generator.

        Raises
        ------
        KeyError
            If generator_name is not registered
        """
        if generator_name not in self._generators:
            available = ", ".join(self.list_available())
            raise KeyError(
                f"Image generator '{generator_name}' not found. Available generators: {available}"
            )
        return self._generators[generator_name](config)

    def list_available(self) -> list[str]:
        return list(self._generators.keys())

    def get_generator_info(self, generator_name: str) -> dict[str, Any] | None:
        generator_class = self._generators.get(generator_name)
        if generator_class is None:
            return None
        return {"name": generator_class.name, "description": generator_class.description}


# Global generator registry instance
generator_registry = GeneratorRegistry()
generator_registry.register(OpenAIImageGenerator)
generator_registry.register(GeminiImageGenerator)
generator_registry.register(MockImageGenerator)
