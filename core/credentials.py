"""
BigQuery credentials via workload identity federation.

The hosting platform hands the process a short-lived OIDC token. It is
exchanged with Google STS for a federated access token, which is in turn
used to mint a BigQuery-scoped token for a service account. The result is
cached process-wide until five minutes before it expires.

No service account key file is involved at any point.
"""

import asyncio
import logging
import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import httpx

from core.exceptions import CredentialExchangeError
from core.http import open_client, truncate_body

logger = logging.getLogger(__name__)

STS_TOKEN_URL = "https://sts.googleapis.com/v1/token"
IAM_CREDENTIALS_URL = (
    "https://iamcredentials.googleapis.com/v1/projects/-/serviceAccounts/"
    "{email}:generateAccessToken"
)

TOKEN_EXCHANGE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:token-exchange"
ACCESS_TOKEN_TYPE = "urn:ietf:params:oauth:token-type:access_token"
JWT_TOKEN_TYPE = "urn:ietf:params:oauth:token-type:jwt"

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
BIGQUERY_SCOPE = "https://www.googleapis.com/auth/bigquery"

EXPIRY_MARGIN = timedelta(minutes=5)
DEFAULT_TOKEN_LIFETIME = timedelta(hours=1)

_FRACTION = re.compile(r"\.(\d+)")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AccessToken:
    """A bearer token and the instant it stops being accepted"""
    token: str
    expiry: datetime

    def is_fresh(self, now: datetime, margin: timedelta = EXPIRY_MARGIN) -> bool:
        return self.expiry - now > margin


# ============================================================================
# Subject token suppliers
# ============================================================================

class SubjectTokenSupplier(ABC):
    """Source of the OIDC identity assertion presented to STS"""

    @abstractmethod
    async def get_subject_token(self) -> str:
        """Return a fresh identity token. Never cached by callers."""
        pass


class EnvironmentTokenSupplier(SubjectTokenSupplier):
    """Reads the token from an environment variable (Vercel exposes VERCEL_OIDC_TOKEN)"""

    def __init__(self, env_var: str = "VERCEL_OIDC_TOKEN"):
        self.env_var = env_var

    async def get_subject_token(self) -> str:
        token = os.environ.get(self.env_var, "").strip()
        if not token:
            raise CredentialExchangeError(
                "subject_token",
                f"OIDC token not found in environment variable {self.env_var}",
                context={"env_var": self.env_var}
            )
        return token


class FileTokenSupplier(SubjectTokenSupplier):
    """Reads the token from a projected token file (Kubernetes, CI runners)"""

    def __init__(self, path: str):
        self.path = Path(path)

    async def get_subject_token(self) -> str:
        try:
            token = self.path.read_text(encoding="utf-8").strip()
        except OSError as e:
            raise CredentialExchangeError(
                "subject_token",
                f"Cannot read OIDC token file {self.path}",
                context={"path": str(self.path)},
                original_exception=e
            )
        if not token:
            raise CredentialExchangeError(
                "subject_token",
                f"OIDC token file {self.path} is empty",
                context={"path": str(self.path)}
            )
        return token


# ============================================================================
# Broker
# ============================================================================

class CredentialBroker:
    """
    Exchanges the platform identity token for a BigQuery access token.

    Flow:
    1. Return the cached token while it has more than 5 minutes left
    2. Read a fresh OIDC token from the supplier
    3. STS token exchange -> federated access token
    4. generateAccessToken on the service account -> BigQuery token
       (skipped when no service account is configured; the federated
       token is then used directly)
    5. Cache with the reported expiry, or 1 hour from acquisition

    Concurrent callers that miss the cache wait on the same exchange.
    """

    def __init__(
        self,
        audience: str,
        subject_token_supplier: SubjectTokenSupplier,
        service_account_email: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        clock: Callable[[], datetime] = utcnow
    ):
        self.audience = audience
        self.subject_token_supplier = subject_token_supplier
        self.service_account_email = service_account_email
        self.timeout = timeout
        self.exchange_count = 0
        self._client = client
        self._clock = clock
        self._cached: Optional[AccessToken] = None
        self._pending: Optional[asyncio.Future] = None

    @classmethod
    def from_settings(cls, settings, client: Optional[httpx.AsyncClient] = None) -> "CredentialBroker":
        """Build a broker from application settings"""
        if settings.OIDC_TOKEN_FILE:
            supplier: SubjectTokenSupplier = FileTokenSupplier(settings.OIDC_TOKEN_FILE)
        else:
            supplier = EnvironmentTokenSupplier(settings.OIDC_TOKEN_ENV_VAR)

        return cls(
            audience=settings.workload_identity_audience,
            subject_token_supplier=supplier,
            service_account_email=settings.GCP_SERVICE_ACCOUNT_EMAIL,
            client=client,
            timeout=settings.HTTP_TIMEOUT,
        )

    @property
    def cached_token(self) -> Optional[AccessToken]:
        return self._cached

    def invalidate(self) -> None:
        """Drop the cached token so the next call re-exchanges"""
        self._cached = None

    async def get_access_token(self) -> str:
        """
        Return a BigQuery-scoped bearer token.

        Raises:
            CredentialExchangeError: If any hop of the exchange fails
        """
        cached = self._cached
        if cached is not None and cached.is_fresh(self._clock()):
            return cached.token

        # Every caller that misses joins the same in-flight exchange, and
        # shares its failure too
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._refresh())
            self._pending.add_done_callback(self._clear_pending)

        token = await asyncio.shield(self._pending)
        return token.token

    async def _refresh(self) -> AccessToken:
        self._cached = await self._exchange()
        return self._cached

    def _clear_pending(self, future: asyncio.Future) -> None:
        if self._pending is future:
            self._pending = None
        if not future.cancelled():
            # Mark the error retrieved when every waiter was cancelled
            future.exception()

    async def _exchange(self) -> AccessToken:
        self.exchange_count += 1
        subject_token = await self.subject_token_supplier.get_subject_token()

        async with open_client(self._client, self.timeout) as client:
            federated = await self._exchange_sts(client, subject_token)

            if not self.service_account_email:
                logger.info(f"Using federated token directly (expires {federated.expiry.isoformat()})")
                return federated

            token = await self._impersonate(client, federated.token)

        logger.info(
            f"Obtained BigQuery token for {self.service_account_email} "
            f"(expires {token.expiry.isoformat()})"
        )
        return token

    async def _exchange_sts(self, client: httpx.AsyncClient, subject_token: str) -> AccessToken:
        acquired_at = self._clock()
        body = await self._post(
            client,
            "sts",
            STS_TOKEN_URL,
            data={
                "grant_type": TOKEN_EXCHANGE_GRANT_TYPE,
                "audience": self.audience,
                "scope": CLOUD_PLATFORM_SCOPE,
                "requested_token_type": ACCESS_TOKEN_TYPE,
                "subject_token": subject_token,
                "subject_token_type": JWT_TOKEN_TYPE,
            },
        )

        access_token = body.get("access_token")
        if not access_token:
            raise CredentialExchangeError(
                "sts",
                "STS response did not contain an access token",
                context={"error": body.get("error"), "error_description": body.get("error_description")}
            )

        expiry = acquired_at + DEFAULT_TOKEN_LIFETIME
        expires_in = body.get("expires_in")
        if isinstance(expires_in, (int, float)) and expires_in > 0:
            expiry = acquired_at + timedelta(seconds=expires_in)

        return AccessToken(token=access_token, expiry=expiry)

    async def _impersonate(self, client: httpx.AsyncClient, federated_token: str) -> AccessToken:
        acquired_at = self._clock()
        body = await self._post(
            client,
            "impersonation",
            IAM_CREDENTIALS_URL.format(email=self.service_account_email),
            json={
                "scope": [BIGQUERY_SCOPE],
                "lifetime": f"{int(DEFAULT_TOKEN_LIFETIME.total_seconds())}s",
            },
            headers={"Authorization": f"Bearer {federated_token}"},
        )

        access_token = body.get("accessToken")
        if not access_token:
            raise CredentialExchangeError(
                "impersonation",
                "generateAccessToken response did not contain an access token",
                context={"service_account": self.service_account_email, "error": body.get("error")}
            )

        expiry = parse_expire_time(body.get("expireTime")) or acquired_at + DEFAULT_TOKEN_LIFETIME
        return AccessToken(token=access_token, expiry=expiry)

    async def _post(self, client: httpx.AsyncClient, hop: str, url: str, **kwargs) -> Dict[str, Any]:
        try:
            response = await client.post(url, timeout=self.timeout, **kwargs)
        except httpx.HTTPError as e:
            raise CredentialExchangeError(
                hop,
                f"{hop} request failed",
                context={"url": url},
                original_exception=e
            )

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400:
            raise CredentialExchangeError(
                hop,
                f"{hop} request returned HTTP {response.status_code}",
                context={
                    "url": url,
                    "status_code": response.status_code,
                    "response_body": truncate_body(response),
                }
            )

        return body if isinstance(body, dict) else {}


def parse_expire_time(value: Any) -> Optional[datetime]:
    """
    Parse an RFC 3339 expireTime such as 2024-05-01T10:00:00.123456789Z.

    Fractions beyond microseconds are dropped. Returns None when unparseable.
    """
    if not isinstance(value, str) or not value:
        return None

    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value.strip())
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
