from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import httpx

from detect_backdoor.core.config import TOOL_NAME, VERSION, settings

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": f"{TOOL_NAME}/{VERSION} (+https://github.com/microsoft/OSSGadget)",
    "Accept": "application/json, */*;q=0.8",
}


def build_client(timeout: float | None = None, transport: httpx.BaseTransport | None = None) -> httpx.Client:
    return httpx.Client(
        headers=DEFAULT_HEADERS,
        timeout=timeout or settings.HTTP_TIMEOUT,
        follow_redirects=True,
        transport=transport,
    )


class HttpFetcher:
    """Thin wrapper over a shared ``httpx.Client`` used by every package manager."""

    def __init__(self, client: httpx.Client | None = None) -> None:
        self.client = client or build_client()

    def get_json(self, url: str) -> Any:
        logger.debug("GET %s", url)
        r = self.client.get(url)
        r.raise_for_status()
        return r.json()

    def download(self, url: str, dest: Path) -> Path:
        logger.info("Downloading %s", url)
        dest.parent.mkdir(parents=True, exist_ok=True)
        with self.client.stream("GET", url) as r:
            r.raise_for_status()
            with dest.open("wb") as f:
                for chunk in r.iter_bytes():
                    f.write(chunk)
        return dest

    def close(self) -> None:
        self.client.close()
