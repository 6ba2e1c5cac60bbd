import logging
import re
import time
from typing import Any, Optional

import httpx

from railcover.core.config import Settings
from railcover.core.errors import UpstreamError

logger = logging.getLogger(__name__)

_BOT_TOKEN_RE = re.compile(r"/bot[^/]+/")


def mask_bot_token(url: str) -> str:
    return _BOT_TOKEN_RE.sub("/bot****/", url)


async def log_request(request: httpx.Request) -> None:
    logger.debug("HTTP %s %s", request.method, mask_bot_token(str(request.url)))


def make_timeout(cfg: Settings) -> httpx.Timeout:
    return httpx.Timeout(
        connect=cfg.connect_timeout,
        read=cfg.read_timeout,
        write=cfg.write_timeout,
        pool=cfg.pool_timeout,
    )


def make_async_client(
    cfg: Settings,
    *,
    base_url: str = "",
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=make_timeout(cfg),
        headers={"Content-Type": "application/json"},
        event_hooks={"request": [log_request]},
        transport=transport,
    )


async def post_json(client: httpx.AsyncClient, path: str, payload: Any, *, service: str) -> Any:
    """
    Single POST, no retry. Every failure (transport, timeout, non-2xx status,
    non-JSON body) surfaces as UpstreamError.
    """
    t0 = time.perf_counter()
    try:
        r = await client.post(path, json=payload)
    except httpx.TimeoutException as e:
        elapsed = time.perf_counter() - t0
        logger.warning("%s: %s POST %s after %.2fs", service, e.__class__.__name__, path, elapsed)
        raise UpstreamError(f"{service} timed out") from e
    except httpx.HTTPError as e:
        elapsed = time.perf_counter() - t0
        logger.warning("%s: request failed POST %s after %.2fs error=%r", service, path, elapsed, e)
        raise UpstreamError(f"{service} unreachable: {e}") from e

    elapsed = time.perf_counter() - t0
    if elapsed > 10:
        logger.info("%s: POST %s completed in %.2fs status=%d (slow)", service, path, elapsed, r.status_code)
    else:
        logger.debug("%s: POST %s completed in %.2fs status=%d", service, path, elapsed, r.status_code)

    if not r.is_success:
        snippet = (r.text or "")[:300]
        logger.warning("%s: HTTP %d POST %s body_snippet=%r", service, r.status_code, path, snippet)
        raise UpstreamError(f"{service} failed: {r.status_code}", status_code=r.status_code)

    try:
        return r.json()
    except ValueError as e:
        raise UpstreamError(f"{service} returned a non-JSON body") from e
