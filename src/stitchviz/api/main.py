"""StitchViz: FastAPI Application.

This module is the single entry point for the web service.  It defines
:func:`create_app`, the module-level ``app`` instance, all routes, and the
``main()`` CLI function that launches the uvicorn server.

Architecture
------------
The application is stateless:

- **Configuration** comes from :mod:`stitchviz.core.config` (environment
  variables and ``.env``).
- **Prompt building** is a pure function in
  :mod:`stitchviz.api.prompt_builder`.
- **Image generation** is one awaited call on the configured
  :class:`~stitchviz.core.generators.ImageGeneratorBase` back end, stored on
  ``app.state.image_generator``.
- **Authentication** is an optional bearer-token check
  (:mod:`stitchviz.core.auth`), active when ``auth_provider`` is set.

Every error response has the body ``{"error": "<message>"}``.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
POST      ``/generate``                 Generate three mockup images
POST      ``/generateMockups``          Alias of ``/generate``
POST      ``/prompt/compile``           Preview the compiled prompt
GET       ``/health``                   Liveness and active back end
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    stitchviz

Direct invocation::

    python -m stitchviz.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stitchviz import __version__
from stitchviz.api.models import (
    ErrorResponse,
    GenerateRequest,
    GenerateResponse,
    PromptPreviewResponse,
)
from stitchviz.api.prompt_builder import build_prompt
from stitchviz.core.auth import AuthContext, TokenVerifier, authenticate, create_token_verifier
from stitchviz.core.config import StitchvizConfig, config
from stitchviz.core.errors import AuthConfigurationError, AuthenticationError
from stitchviz.core.generators import ImageGeneratorBase, generator_registry

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Missing required fields: projectDescription, colorVibe, colorCount"
INVALID_BODY_MESSAGE = "Invalid request body"
INVALID_COLOR_COUNT_MESSAGE = "Invalid colorCount: must be one of monochrome, 2-4, 5-7"
GENERATION_FAILED_MESSAGE = "Failed to generate images"
AUTH_UNAVAILABLE_MESSAGE = "Authentication service unavailable"

_REQUIRED_FIELDS = frozenset({"projectDescription", "colorVibe", "colorCount"})

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or malformed input"},
    401: {"model": ErrorResponse, "description": "Missing or invalid bearer token"},
}


def _error_response(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def _validation_message(exc: RequestValidationError) -> str:
    """Map pydantic validation errors onto the client-facing 400 message.

    Missing or empty required fields take precedence; ``null`` and ``""``
    count as missing.  An unknown ``colorCount`` gets its own message.
    Anything else (unparseable JSON, wrong types, non-object body) is an
    invalid body.
    """
    errors = exc.errors()
    if any(err.get("type") == "json_invalid" for err in errors):
        return INVALID_BODY_MESSAGE

    for err in errors:
        loc = err.get("loc", ())
        field = loc[-1] if loc else None
        if err.get("type") in ("missing", "string_too_short"):
            return MISSING_FIELDS_MESSAGE
        if field in _REQUIRED_FIELDS and err.get("input") in (None, ""):
            return MISSING_FIELDS_MESSAGE

    if any(err.get("loc", ())[-1:] == ("colorCount",) for err in errors):
        return INVALID_COLOR_COUNT_MESSAGE
    return INVALID_BODY_MESSAGE


# ---------------------------------------------------------------------------
# Dependencies.
# ---------------------------------------------------------------------------


async def require_caller(
    request: Request,
    authorization: str | None = Header(default=None),
) -> AuthContext | None:
    """Authenticate the request when a token verifier is installed.

    Returns:
        The caller identity, or ``None`` when authentication is disabled.

    Raises:
        AuthenticationError: Served as 401 by the application error handler.
    """
    return await authenticate(authorization, request.app.state.token_verifier)


def get_image_generator(request: Request) -> ImageGeneratorBase:
    return request.app.state.image_generator


# ---------------------------------------------------------------------------
# Application lifecycle.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Log the active back end on startup; release provider clients on shutdown."""
    generator: ImageGeneratorBase = app.state.image_generator
    logger.info(
        "Using image generator: %s (auth: %s)",
        generator.name,
        "enabled" if app.state.token_verifier is not None else "disabled",
    )

    yield  # Application runs here.

    await generator.aclose()
    logger.info("Image generator closed on shutdown.")


def create_app(
    settings: StitchvizConfig | None = None,
    *,
    image_generator: ImageGeneratorBase | None = None,
    token_verifier: TokenVerifier | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Configuration; defaults to the global ``config``.
        image_generator: Generator back end.  Defaults to the registry entry
            named by ``settings.image_generator``.
        token_verifier: Bearer-token verifier.  Defaults to the verifier
            selected by ``settings.auth_provider`` (``None`` disables auth).

    Raises:
        KeyError: If ``settings.image_generator`` names no registered back
            end.
    """
    settings = settings or config

    application = FastAPI(
        title="StitchViz",
        description="AI mockups of crochet projects.",
        version=__version__,
        lifespan=lifespan,
    )
    application.state.config = settings
    application.state.image_generator = image_generator or generator_registry.instantiate(
        settings.image_generator, settings
    )
    application.state.token_verifier = (
        token_verifier if token_verifier is not None else create_token_verifier(settings)
    )

    # Browsers call the API from the front end's own origin.
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @application.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = _validation_message(exc)
        logger.info("Rejected %s %s: %s", request.method, request.url.path, message)
        return _error_response(400, message)

    @application.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError) -> JSONResponse:
        return _error_response(401, str(exc), headers={"WWW-Authenticate": "Bearer"})

    @application.exception_handler(AuthConfigurationError)
    async def handle_auth_configuration_error(request: Request, exc: AuthConfigurationError) -> JSONResponse:
        logger.error("Token verifier unavailable", exc_info=exc)
        return _error_response(500, AUTH_UNAVAILABLE_MESSAGE)

    _register_routes(application)
    return application


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


def _register_routes(application: FastAPI) -> None:
    @application.post(
        "/generate",
        response_model=GenerateResponse,
        responses={**_ERROR_RESPONSES, 500: {"model": ErrorResponse}},
    )
    @application.post(
        "/generateMockups",
        response_model=GenerateResponse,
        responses={**_ERROR_RESPONSES, 500: {"model": ErrorResponse}},
        include_in_schema=False,
    )
    async def generate_mockups(
        req: GenerateRequest,
        caller: AuthContext | None = Depends(require_caller),
        generator: ImageGeneratorBase = Depends(get_image_generator),
    ) -> GenerateResponse | JSONResponse:
        """Generate three crochet mockups for the submitted description.

        This endpoint:

        1. Validates the body (400 on missing or malformed fields, before
           any provider call).
        2. Builds the prompt from description, colour vibe, and colour count.
        3. Makes one provider call for three 1024x1024 images.

        Returns:
            ``{"images": [...]}`` with one PNG data URI per image.  Any
            failure in steps 2-3 yields 500 ``{"error": "Failed to generate
            images"}``; the underlying cause is logged, not returned.
        """
        try:
            prompt = build_prompt(req.project_description, req.color_vibe, req.color_count)
            logger.info("Built prompt: %s", prompt)
            images = await generator.generate_images(prompt)
        except Exception:
            logger.exception("Error generating images")
            return _error_response(500, GENERATION_FAILED_MESSAGE)

        return GenerateResponse(images=images)

    @application.post(
        "/prompt/compile",
        response_model=PromptPreviewResponse,
        responses=_ERROR_RESPONSES,
    )
    async def compile_prompt(
        req: GenerateRequest,
        caller: AuthContext | None = Depends(require_caller),
    ) -> PromptPreviewResponse:
        """Preview the compiled prompt without calling the provider."""
        return PromptPreviewResponse(
            prompt=build_prompt(req.project_description, req.color_vibe, req.color_count)
        )

    @application.get("/health")
    async def health_check(request: Request) -> dict:
        """Health check endpoint."""
        return {"status": "healthy", "generator": request.app.state.image_generator.name}


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port, and log level from :data:`~stitchviz.core.config.config`
    (``STITCHVIZ_SERVER_HOST``, ``STITCHVIZ_SERVER_PORT`` or ``PORT``,
    ``STITCHVIZ_LOG_LEVEL``).  Defaults to ``0.0.0.0:8080``.

    This function is registered as the ``stitchviz`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "stitchviz.api.main:app",
        host=config.server_host,
        port=config.server_port,
        log_level=config.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    main()
