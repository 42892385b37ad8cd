from __future__ import annotations

import asyncio
import logging
import time
from typing import Dict, Optional, Protocol

import httpx

from pagespy.core.config import (
    ACCEPT_ENCODING,
    HTTP_TIMEOUT_CONNECT,
    RESPONSE_RAW_MAX_BYTES,
    USER_AGENT,
)
from pagespy.core.errors import FetchError, HTTPStatusError, TransportError
from pagespy.core.normalize import normalize_url
from pagespy.scanner.page import FetchedPage
from pagespy.schemas.types import FetchConfig, RawResponse, ResponseMetaV1

logger = logging.getLogger("pagespy.http")

DEFAULT_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept-Encoding": ACCEPT_ENCODING,
}


def _decode_body(buffer: bytearray, encoding: Optional[str]) -> str:
    try:
        return buffer.decode(encoding or "utf-8", errors="replace")
    except LookupError:
        # Charset annoncé inconnu de Python
        return buffer.decode("utf-8", errors="replace")


class HTTPTransport(Protocol):
    """Capacité injectée : une tentative GET, lève en cas d'erreur réseau."""

    async def request(
        self, url: str, headers: Dict[str, str], timeout: Optional[float]
    ) -> RawResponse: ...


class HttpxTransport:
    """Transport par défaut basé sur httpx (redirections suivies, corps plafonné)."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        max_bytes: int = RESPONSE_RAW_MAX_BYTES,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self.max_bytes = max_bytes

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(follow_redirects=True)
        return self._client

    async def request(
        self, url: str, headers: Dict[str, str], timeout: Optional[float]
    ) -> RawResponse:
        client = self._get_client()
        connect = min(timeout, HTTP_TIMEOUT_CONNECT) if timeout else HTTP_TIMEOUT_CONNECT
        try:
            async with client.stream(
                "GET", url, headers=headers, timeout=httpx.Timeout(timeout, connect=connect)
            ) as resp:
                buffer = bytearray()
                truncated = False
                async for chunk in resp.aiter_bytes():
                    if len(buffer) + len(chunk) > self.max_bytes:
                        buffer.extend(chunk[: self.max_bytes - len(buffer)])
                        truncated = True
                        break
                    buffer.extend(chunk)

                return RawResponse(
                    status_code=resp.status_code,
                    headers=dict(resp.headers),
                    effective_url=str(resp.url),
                    body=_decode_body(buffer, resp.encoding),
                    truncated=truncated,
                )
        except httpx.HTTPError as e:
            raise TransportError(f"{type(e).__name__}: {e}", url=url) from e

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None


async def fetch_page(
    url: str,
    config: Optional[FetchConfig] = None,
    transport: Optional[HTTPTransport] = None,
) -> FetchedPage:
    """
    Charge une page avec un budget de retries séquentiels.
    Toute erreur (transport ou statut hors 2xx) consomme un retry ;
    une fois le budget épuisé, la dernière erreur est levée.
    """
    config = config or FetchConfig()
    # InvalidProtocol : levée ici, aucune requête émise
    url = normalize_url(url)

    owned_transport: Optional[HttpxTransport] = None
    if transport is None:
        owned_transport = HttpxTransport()
        transport = owned_transport

    headers = dict(DEFAULT_HEADERS)
    retries = config.retries
    attempts = 0
    t0 = time.perf_counter()

    try:
        while True:
            attempts += 1
            try:
                raw = await transport.request(url, headers, config.timeout)
                if raw.status_code // 100 != 2:
                    raise HTTPStatusError(url, raw.status_code, attempts=attempts)
            except FetchError as e:
                e.attempts = attempts
                error: FetchError = e
            except Exception as e:
                error = TransportError(str(e), url=url, attempts=attempts)
                error.__cause__ = e
            else:
                logger.debug(
                    f"Fetched {url} ({raw.status_code}) in {int((time.perf_counter() - t0) * 1000)}ms "
                    f"after {attempts} attempt(s)"
                )
                return FetchedPage(
                    url=url,
                    response=ResponseMetaV1(
                        status_code=raw.status_code,
                        headers=raw.headers,
                        effective_url=raw.effective_url,
                        truncated=raw.truncated,
                    ),
                    body=raw.body,
                    attempts=attempts,
                )

            if retries <= 0:
                raise error

            retries -= 1
            logger.info(f"Fetch attempt {attempts} for {url} failed ({error}), {retries} retries left")
            if config.backoff > 0:
                await asyncio.sleep(config.backoff * 2 ** (attempts - 1))
    finally:
        if owned_transport is not None:
            await owned_transport.aclose()
