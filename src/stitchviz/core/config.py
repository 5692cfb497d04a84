"""Configuration management for StitchViz.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the STITCHVIZ_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (STITCHVIZ_* prefix, or the provider's own name)
2. .env file in the project root
3. Default values defined in StitchvizConfig

Provider credentials also accept the names the provider SDKs document, so an
existing ``OPENAI_API_KEY`` or ``GEMINI_API_KEY`` is picked up as-is.  The
server port additionally honours ``PORT``, which hosting platforms such as
Cloud Run inject.

Example .env file:
    STITCHVIZ_IMAGE_GENERATOR=openai
    OPENAI_API_KEY=sk-...
    STITCHVIZ_AUTH_PROVIDER=firebase
    FIREBASE_PROJECT_ID=stitchviz-prod

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.

Usage Example
-------------
    from stitchviz.core.config import config

    print(config.image_generator)
    print(config.server_port)
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StitchvizConfig(BaseSettings):
    """Main configuration for the StitchViz back end.

    Attributes
    ----------
    Image Generation:
        image_generator : str
            Name of the registered generator back end (openai, gemini, mock)
        openai_api_key : str | None
            API key for the OpenAI Images API
        openai_model : str
            OpenAI image model identifier
        gemini_api_key : str | None
            API key for the Google GenAI API
        gemini_model : str
            Imagen model identifier

    Authentication:
        auth_provider : Literal["none", "firebase"]
            Bearer-token verification for the generation routes
        firebase_project_id : str | None
            Firebase project whose ID tokens are accepted
        firebase_service_account_path : Path | None
            Service account JSON; application default credentials when unset

    Server:
        cors_allow_origins : list[str]
            Origins allowed by the CORS middleware
        server_host : str
            Bind address for uvicorn
        server_port : int
            Port for uvicorn (1-65535)
        log_level : str
            Root logging level for the console entry point

    Notes
    -----
    - Configuration is immutable after initialization
    - Missing API keys are only reported when a generation is attempted,
      so the service can start (and serve /health) without credentials
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="STITCHVIZ_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Image generation back end
    image_generator: str = Field(
        default="openai",
        validation_alias=AliasChoices("STITCHVIZ_IMAGE_GENERATOR", "IMAGE_GENERATOR_TYPE"),
        description="Registered image generator back end (openai, gemini, mock)",
    )

    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("STITCHVIZ_OPENAI_API_KEY", "OPENAI_API_KEY"),
        description="API key for the OpenAI Images API",
    )
    openai_model: str = Field(
        default="gpt-image-1",
        description="OpenAI image model",
    )

    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("STITCHVIZ_GEMINI_API_KEY", "GEMINI_API_KEY"),
        description="API key for the Google GenAI API",
    )
    gemini_model: str = Field(
        default="imagen-3.0-generate-002",
        description="Imagen model used by the gemini back end",
    )

    # Authentication
    auth_provider: Literal["none", "firebase"] = Field(
        default="none",
        description="Bearer-token verification for generation routes",
    )
    firebase_project_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("STITCHVIZ_FIREBASE_PROJECT_ID", "FIREBASE_PROJECT_ID"),
        description="Firebase project whose ID tokens are accepted",
    )
    firebase_service_account_path: Path | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "STITCHVIZ_FIREBASE_SERVICE_ACCOUNT_PATH", "FIREBASE_SERVICE_ACCOUNT_PATH"
        ),
        description="Service account JSON (application default credentials when unset)",
    )

    # Server settings
    cors_allow_origins: list[str] = Field(
        default=["*"],
        description="Origins allowed to call the API from a browser",
    )
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    server_port: int = Field(
        default=8080,
        validation_alias=AliasChoices("STITCHVIZ_SERVER_PORT", "PORT"),
        description="Server port",
        ge=1,
        le=65535,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level for the console entry point",
    )


# Global configuration instance
# Loads values from environment variables (STITCHVIZ_* prefix) and .env file.
config = StitchvizConfig()
