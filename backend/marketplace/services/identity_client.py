"""Client for the hosted identity provider (GoTrue-compatible auth API).

The application never issues or validates tokens itself. It starts the
OAuth flow, exchanges the returned code for a session, and forwards the
opaque access token to the provider whenever it needs the current user.
"""

import base64
import hashlib
import logging
import secrets
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode
from uuid import UUID

import httpx

from marketplace.config import get_settings
from marketplace.exceptions import IdentityError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The provider's view of the signed-in user."""

    id: UUID
    email: str | None = None


@dataclass(frozen=True)
class AuthSession:
    """Tokens returned by a successful code exchange."""

    access_token: str
    refresh_token: str | None
    identity: Identity


def generate_code_verifier() -> str:
    return secrets.token_urlsafe(48)


def code_challenge_for(verifier: str) -> str:
    """S256 PKCE challenge for a verifier."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def _identity_from_payload(payload: dict[str, Any]) -> Identity:
    try:
        return Identity(id=UUID(str(payload["id"])), email=payload.get("email"))
    except (KeyError, ValueError) as e:
        raise IdentityError(f"Malformed user payload: {e}") from e


class IdentityClient:
    """Thin async wrapper around the provider's REST endpoints."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.identity_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.identity_anon_key
        self.timeout = settings.http_timeout_seconds
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self.base_url}/auth/v1",
            headers={"apikey": self.api_key},
            timeout=self.timeout,
            transport=self.transport,
        )

    def authorization_url(self, provider: str, redirect_to: str, code_verifier: str) -> str:
        params = {
            "provider": provider,
            "redirect_to": redirect_to,
            "code_challenge": code_challenge_for(code_verifier),
            "code_challenge_method": "s256",
        }
        return f"{self.base_url}/auth/v1/authorize?{urlencode(params)}"

    async def exchange_code(self, code: str, code_verifier: str) -> AuthSession:
        """Exchange an authorization code for a session."""
        try:
            async with self._client() as client:
                response = await client.post(
                    "/token",
                    params={"grant_type": "pkce"},
                    json={"auth_code": code, "code_verifier": code_verifier},
                )
        except httpx.HTTPError as e:
            logger.error(f"Identity provider unreachable during code exchange: {e}")
            raise IdentityError("Authentication service unavailable") from e

        if response.status_code != 200:
            payload = _safe_json(response)
            logger.error(f"Code exchange failed ({response.status_code}): {response.text}")
            raise IdentityError(
                payload.get("error_description") or payload.get("msg") or "Failed to exchange code for session",
                code=payload.get("error") or "invalid_grant",
                status_code=response.status_code,
            )

        payload = _safe_json(response)
        if not payload.get("access_token"):
            logger.error(f"Code exchange returned no access token: {response.text}")
            raise IdentityError("Failed to exchange code for session", code="invalid_grant")
        return AuthSession(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            identity=_identity_from_payload(payload.get("user") or {}),
        )

    async def get_user(self, access_token: str) -> Identity:
        """Resolve the user behind an access token."""
        try:
            async with self._client() as client:
                response = await client.get(
                    "/user",
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as e:
            logger.error(f"Identity provider unreachable: {e}")
            raise IdentityError("Authentication service unavailable") from e

        if response.status_code != 200:
            raise IdentityError(
                "Session is no longer valid",
                code="invalid_token",
                status_code=response.status_code,
            )
        return _identity_from_payload(response.json())

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session at the provider. Failures are logged only."""
        try:
            async with self._client() as client:
                response = await client.post(
                    "/logout",
                    headers={"Authorization": f"Bearer {access_token}"},
                )
            if response.status_code >= 400:
                logger.warning(f"Sign-out returned {response.status_code}")
        except httpx.HTTPError as e:
            logger.warning(f"Sign-out request failed: {e}")

    async def health(self) -> dict:
        try:
            async with self._client() as client:
                response = await client.get("/health")
        except httpx.HTTPError as e:
            return {"ok": False, "message": str(e)}
        return {"ok": response.status_code == 200}


def _safe_json(response: httpx.Response) -> dict:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


_identity_client: IdentityClient | None = None


def get_identity_client() -> IdentityClient:
    """FastAPI dependency returning the shared identity client."""
    global _identity_client
    if _identity_client is None:
        _identity_client = IdentityClient()
    return _identity_client
