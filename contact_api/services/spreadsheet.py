"""
Spreadsheet logger.

Appends one row per submission to an Excel table stored in a Microsoft 365
drive. Authentication uses the OAuth2 client-credentials grant against the
Microsoft identity platform; the resulting bearer token is cached for the
process until shortly before it expires.
"""

import logging
import time
from typing import Dict, List, Optional, Tuple, Union
from urllib.parse import quote

import httpx

from contact_api.core.config import Settings, SpreadsheetConfig
from contact_api.core.errors import DeliveryError
from contact_api.models.contact import ContactSubmission

logger = logging.getLogger(__name__)

TOKEN_URL = "https://login.microsoftonline.com/{tenant}/oauth2/v2.0/token"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"
GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"

# Refresh this many seconds before the provider's stated expiry
TOKEN_EXPIRY_SKEW = 60

Cell = Union[str, int, float, None]


class TokenCache:
    """Process-wide bearer tokens keyed by (tenant, client id)"""

    def __init__(self):
        self._tokens: Dict[Tuple[str, str], Tuple[str, float]] = {}

    def get(self, key: Tuple[str, str]) -> Optional[str]:
        entry = self._tokens.get(key)
        if not entry:
            return None
        token, expires_at = entry
        if time.monotonic() >= expires_at:
            self._tokens.pop(key, None)
            return None
        return token

    def put(self, key: Tuple[str, str], token: str, expires_in: float):
        self._tokens[key] = (token, time.monotonic() + max(0.0, expires_in - TOKEN_EXPIRY_SKEW))

    def discard(self, key: Tuple[str, str]):
        self._tokens.pop(key, None)

    def clear(self):
        self._tokens.clear()


token_cache = TokenCache()


def build_row(submission: ContactSubmission) -> List[Cell]:
    """Column order of the contact table"""
    time_spent = submission.timeSpentMs
    if isinstance(time_spent, float) and time_spent.is_integer():
        time_spent = int(time_spent)
    return [
        submission.name,
        submission.email,
        submission.message,
        "Yes" if submission.hasWebsite else "No",
        submission.website or "",
        submission.submittedAt,
        submission.source or "",
        time_spent if time_spent is not None else "",
        submission.userAgent or "",
        submission.page or "",
        submission.ip or "",
    ]


def rows_add_url(config: SpreadsheetConfig) -> str:
    return (
        f"{GRAPH_BASE_URL}/users/{quote(config.user_upn, safe='')}"
        f"/drive/root:/{quote(config.file_path, safe='')}"
        f":/workbook/tables('{quote(config.table_name, safe='')}')/rows/add"
    )


class SpreadsheetLogger:
    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None, cache: Optional[TokenCache] = None):
        self.settings = settings
        self.transport = transport
        self.cache = cache if cache is not None else token_cache

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, timeout=self.settings.delivery_timeout_seconds)

    async def fetch_token(self, client: httpx.AsyncClient, config: SpreadsheetConfig) -> str:
        """Exchange the app credentials for a Graph bearer token"""
        cache_key = (config.tenant_id, config.client_id)
        cached = self.cache.get(cache_key)
        if cached:
            return cached

        response = await client.post(
            TOKEN_URL.format(tenant=quote(config.tenant_id, safe="")),
            data={
                "client_id": config.client_id,
                "client_secret": config.client_secret.get_secret_value(),
                "scope": GRAPH_SCOPE,
                "grant_type": "client_credentials",
            },
        )
        if not response.is_success:
            raise DeliveryError(
                f"Graph token error {response.status_code}: {response.text}",
                upstream_status=response.status_code,
                upstream_body=response.text,
            )

        data = response.json()
        token = data.get("access_token")
        if not token:
            raise DeliveryError("Graph token error: response had no access_token", upstream_status=response.status_code)

        self.cache.put(cache_key, token, float(data.get("expires_in", 3600)))
        return token

    async def append_row(self, values: List[Cell]):
        """
        Append one row to the configured table.

        Raises:
            ConfigurationError: credentials or target are not configured
            DeliveryError: the token exchange or the row append failed
        """
        config = self.settings.spreadsheet_config()

        try:
            async with self._client() as client:
                token = await self.fetch_token(client, config)
                response = await client.post(
                    rows_add_url(config),
                    json={"values": [values]},
                    headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
                )
        except httpx.HTTPError as e:
            raise DeliveryError(f"Spreadsheet request failed: {str(e) or type(e).__name__}") from e

        if response.status_code == 401:
            # Token revoked or rotated; the next request fetches a fresh one
            self.cache.discard((config.tenant_id, config.client_id))

        if not response.is_success:
            raise DeliveryError(
                f"Excel add row error {response.status_code}: {response.text}",
                upstream_status=response.status_code,
                upstream_body=response.text,
            )

        logger.info(f"✅ Row appended to {config.file_path} ({config.table_name})")

    async def log_submission(self, submission: ContactSubmission):
        await self.append_row(build_row(submission))
