"""Bearer-token authentication for the generation routes.

The front end signs users in with Firebase and attaches the resulting ID
token to every generation request as ``Authorization: Bearer <token>``.
This module verifies that token and exposes the caller's identity as an
:class:`AuthContext`.

Verification is pluggable through :class:`TokenVerifier`.  The production
implementation, :class:`FirebaseTokenVerifier`, delegates to
``firebase_admin.auth.verify_id_token``; tests supply their own verifier.
When ``auth_provider`` is ``"none"`` no verifier is installed and
:func:`authenticate` lets every request through.

Failure modes (all raise :class:`AuthenticationError`, served as HTTP 401):

- no ``Authorization`` header
- header not in ``Bearer <token>`` form
- token rejected by the verifier

A verifier that cannot be set up (bad service account file, no default
credentials) raises :class:`~stitchviz.core.errors.AuthConfigurationError`
instead, served as HTTP 500.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials
from starlette.concurrency import run_in_threadpool

from stitchviz.core.config import StitchvizConfig
from stitchviz.core.errors import AuthConfigurationError, AuthenticationError

logger = logging.getLogger(__name__)

_BEARER_PREFIX = "Bearer "
_FIREBASE_APP_NAME = "stitchviz"


@dataclass(frozen=True)
class AuthContext:
    """Identity of an authenticated caller."""

    user_id: str
    email: str = ""
    verified: bool = False


class TokenVerifier(ABC):
    """Verifies an identity-provider token and returns the caller identity.

    Attributes
    ----------
    rejection_errors : tuple[type[Exception], ...]
        Exceptions from :meth:`verify` that mean the token itself is not
        acceptable.  Anything else is a server fault and propagates.
    """

    rejection_errors: tuple[type[Exception], ...] = (ValueError,)

    @abstractmethod
    async def verify(self, token: str) -> AuthContext:
        """Verify *token*.

        Raises:
            Exception: One of ``rejection_errors`` if the token is rejected.
        """


class FirebaseTokenVerifier(TokenVerifier):
    """Verifies Firebase ID tokens with the Firebase Admin SDK.

    The Firebase app is initialised lazily on the first verification, using
    the configured service account file or application default credentials.
    An app already registered under the same name in this process is reused.
    """

    rejection_errors = (
        ValueError,
        firebase_auth.InvalidIdTokenError,
        firebase_auth.CertificateFetchError,
        firebase_auth.UserDisabledError,
    )

    def __init__(self, config: StitchvizConfig) -> None:
        self.config = config
        self._app: firebase_admin.App | None = None

    def _app_instance(self) -> firebase_admin.App:
        """Return the Firebase app, creating it on first use.

        Raises:
            AuthConfigurationError: If credentials cannot be loaded or the
                app cannot be initialised.
        """
        if self._app is None:
            try:
                self._app = firebase_admin.get_app(_FIREBASE_APP_NAME)
            except ValueError:
                self._app = self._initialize_app()
        return self._app

    def _initialize_app(self) -> firebase_admin.App:
        options = {}
        if self.config.firebase_project_id:
            options["projectId"] = self.config.firebase_project_id
        try:
            if self.config.firebase_service_account_path:
                credential = credentials.Certificate(str(self.config.firebase_service_account_path))
            else:
                credential = credentials.ApplicationDefault()
            return firebase_admin.initialize_app(credential, options, name=_FIREBASE_APP_NAME)
        except Exception as exc:
            raise AuthConfigurationError(f"Firebase initialisation failed: {exc}") from exc

    def _verify_sync(self, token: str) -> dict:
        return firebase_auth.verify_id_token(token, app=self._app_instance())

    async def verify(self, token: str) -> AuthContext:
        # The Admin SDK is synchronous (credential loading, key fetches over HTTP).
        claims = await run_in_threadpool(self._verify_sync, token)
        return AuthContext(
            user_id=claims["uid"],
            email=claims.get("email", "") or "",
            verified=bool(claims.get("email_verified", False)),
        )


def create_token_verifier(config: StitchvizConfig) -> TokenVerifier | None:
    """Return the verifier selected by ``config.auth_provider``, or ``None``."""
    if config.auth_provider == "firebase":
        return FirebaseTokenVerifier(config)
    return None


async def authenticate(
    authorization: str | None, verifier: TokenVerifier | None
) -> AuthContext | None:
    """Resolve the caller identity from an ``Authorization`` header value.

    Args:
        authorization: Raw header value, or ``None`` when absent.
        verifier: Active verifier.  ``None`` disables authentication.

    Returns:
        The caller identity, or ``None`` when authentication is disabled.

    Raises:
        AuthenticationError: If the header is missing, malformed, or the
            token is rejected.
        AuthConfigurationError: If the verifier cannot be initialised.
    """
    if verifier is None:
        return None

    if not authorization:
        raise AuthenticationError("Authorization header required")
    if not authorization.startswith(_BEARER_PREFIX):
        raise AuthenticationError("Invalid authorization header format")

    token = authorization[len(_BEARER_PREFIX) :].strip()
    if not token:
        raise AuthenticationError("Invalid authorization header format")

    try:
        auth_context = await verifier.verify(token)
    except verifier.rejection_errors as exc:
        logger.warning("Token verification failed: %s", exc)
        raise AuthenticationError("Invalid or expired token") from exc

    logger.info(
        "Authenticated request from user: %s (email: %s)",
        auth_context.user_id,
        auth_context.email,
    )
    return auth_context
