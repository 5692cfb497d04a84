"""Core functionality for StitchViz.

- **StitchvizConfig** / **config**: Pydantic Settings configuration
  (environment variables prefixed with STITCHVIZ_)
- **ImageGeneratorBase** / **generator_registry**: provider back ends
  (OpenAI, Gemini, mock) behind one contract
- **TokenVerifier** / **authenticate**: optional bearer-token checks
- **StitchvizError** and subclasses: the service's error taxonomy
"""

from stitchviz.core.auth import AuthContext, FirebaseTokenVerifier, TokenVerifier, authenticate
from stitchviz.core.config import StitchvizConfig, config
from stitchviz.core.errors import (
    AuthConfigurationError,
    AuthenticationError,
    ImageGenerationError,
    PromptBuildError,
    StitchvizError,
)
from stitchviz.core.generators import ImageGeneratorBase, generator_registry

__all__ = [
    "AuthConfigurationError",
    "AuthContext",
    "AuthenticationError",
    "FirebaseTokenVerifier",
    "ImageGenerationError",
    "ImageGeneratorBase",
    "PromptBuildError",
    "StitchvizConfig",
    "StitchvizError",
    "TokenVerifier",
    "authenticate",
    "config",
    "generator_registry",
]
