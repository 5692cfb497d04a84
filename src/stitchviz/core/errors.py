"""Exception hierarchy for StitchViz.

Every error raised by the service derives from :class:`StitchvizError` so the
API layer can tell expected failures apart from programming errors.  The
message of each instance is safe to log; only :class:`AuthenticationError`
messages are returned to the client verbatim.
"""

from __future__ import annotations


class StitchvizError(Exception):
    """Base class for all StitchViz errors."""


class PromptBuildError(StitchvizError, ValueError):
    """Raised when a prompt cannot be built from the supplied input."""


class ImageGenerationError(StitchvizError):
    """Raised when the image provider fails or returns an unusable response."""


class AuthenticationError(StitchvizError):
    """Raised when a request carries no valid bearer token."""


class AuthConfigurationError(StitchvizError):
    """Raised when the token verifier itself cannot be set up (server fault)."""
