"""Shared pytest fixtures for StitchViz tests."""

from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from stitchviz.api.main import create_app
from stitchviz.core.auth import AuthContext, TokenVerifier
from stitchviz.core.config import StitchvizConfig
from stitchviz.core.generators import ImageGeneratorBase

FAKE_PAYLOADS = ["aW1hZ2Ux", "aW1hZ2Uy", "aW1hZ2Uz"]


class RecordingGenerator(ImageGeneratorBase):
    """Generator that records prompts and returns canned payloads.

    Set ``payloads`` to change what the "provider" returns, or ``error`` to
    make the provider call raise.
    """

    name = "recording"
    description = "Test double"

    def __init__(self, config: StitchvizConfig) -> None:
        super().__init__(config)
        self.prompts: list[str] = []
        self.payloads: list[str | None] = list(FAKE_PAYLOADS)
        self.error: Exception | None = None
        self.closed = False

    async def _request_payloads(self, prompt: str) -> list[str | None]:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.payloads

    async def aclose(self) -> None:
        self.closed = True


class StaticTokenVerifier(TokenVerifier):
    """Accepts exactly one token."""

    def __init__(self, valid_token: str = "good-token") -> None:
        self.valid_token = valid_token
        self.seen: list[str] = []

    async def verify(self, token: str) -> AuthContext:
        self.seen.append(token)
        if token != self.valid_token:
            raise ValueError("token rejected")
        return AuthContext(user_id="user-123", email="maker@example.com", verified=True)


# Every environment variable StitchvizConfig reads, prefixed and provider-native.
CONFIG_ENV_NAMES = (
    "STITCHVIZ_IMAGE_GENERATOR",
    "IMAGE_GENERATOR_TYPE",
    "STITCHVIZ_OPENAI_API_KEY",
    "OPENAI_API_KEY",
    "STITCHVIZ_OPENAI_MODEL",
    "STITCHVIZ_GEMINI_API_KEY",
    "GEMINI_API_KEY",
    "STITCHVIZ_GEMINI_MODEL",
    "STITCHVIZ_AUTH_PROVIDER",
    "STITCHVIZ_FIREBASE_PROJECT_ID",
    "FIREBASE_PROJECT_ID",
    "STITCHVIZ_FIREBASE_SERVICE_ACCOUNT_PATH",
    "FIREBASE_SERVICE_ACCOUNT_PATH",
    "STITCHVIZ_CORS_ALLOW_ORIGINS",
    "STITCHVIZ_SERVER_HOST",
    "STITCHVIZ_SERVER_PORT",
    "PORT",
    "STITCHVIZ_LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    """monkeypatch with every configuration variable removed from the environment."""
    for name in CONFIG_ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def test_config(clean_env) -> StitchvizConfig:
    """Configuration isolated from the developer's environment and .env file.

    Returns:
        StitchvizConfig using the mock back end and no authentication
    """
    return StitchvizConfig(
        _env_file=None,
        image_generator="mock",
        auth_provider="none",
        openai_api_key="sk-test",
        gemini_api_key="gemini-test",
    )


@pytest.fixture
def recording_generator(test_config: StitchvizConfig) -> RecordingGenerator:
    return RecordingGenerator(test_config)


@pytest.fixture
def test_client(
    test_config: StitchvizConfig, recording_generator: RecordingGenerator
) -> Generator[TestClient, None, None]:
    """TestClient for an app wired to the recording generator, auth disabled."""
    app = create_app(test_config, image_generator=recording_generator)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def token_verifier() -> StaticTokenVerifier:
    return StaticTokenVerifier()


@pytest.fixture
def auth_client(
    test_config: StitchvizConfig,
    recording_generator: RecordingGenerator,
    token_verifier: StaticTokenVerifier,
) -> Generator[TestClient, None, None]:
    """TestClient for an app that requires a bearer token."""
    app = create_app(
        test_config,
        image_generator=recording_generator,
        token_verifier=token_verifier,
    )
    with TestClient(app) as client:
        yield client


@pytest.fixture
def valid_payload() -> dict:
    return {
        "projectDescription": "amigurumi fox",
        "colorVibe": "warm autumn",
        "colorCount": "2-4",
    }

