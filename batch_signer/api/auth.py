"""OAuth2 password-grant token provider for the signing server."""

import httpx

from batch_signer.api.exceptions import TokenError
from batch_signer.config.settings import Settings
from batch_signer.logging.logger import Log


class PasswordGrantTokenProvider:
    """Fetches a bearer token once and caches it for the provider's lifetime."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        token_url: str,
        client_id: str,
        client_secret: str,
        username: str,
        password: str,
        grant_type: str = "password",
        scope: str = "openid",
    ) -> None:
        self._http = http_client
        self._token_url = token_url
        self._form = {
            "client_id": client_id,
            "username": username,
            "password": password,
            "grant_type": grant_type,
            "scope": scope,
            "client_secret": client_secret,
        }
        self._token: str | None = None

    async def get_token(self) -> str:
        if self._token is None:
            self._token = await self._request_token()
        return self._token

    async def _request_token(self) -> str:
        try:
            response = await self._http.post(self._token_url, data=self._form)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise TokenError(
                f"Token endpoint returned status {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise TokenError(f"Token request failed: {exc}") from exc

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token or not isinstance(token, str):
            raise TokenError("Token endpoint response has no access_token")
        Log.info("Obtained bearer token for signing server")
        return token


def build_token_provider(
    settings: Settings, http_client: httpx.AsyncClient
) -> PasswordGrantTokenProvider | None:
    """Return a provider when AUTH_URL is configured, otherwise None."""
    if not settings.auth_url.strip():
        return None
    return PasswordGrantTokenProvider(
        http_client,
        token_url=settings.auth_url,
        client_id=settings.auth_client_id,
        client_secret=settings.auth_client_secret,
        username=settings.auth_username,
        password=settings.auth_password,
        grant_type=settings.auth_grant_type,
        scope=settings.auth_scope,
    )
