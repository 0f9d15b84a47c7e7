from __future__ import annotations

from pathlib import Path

from detect_backdoor.core.config import settings
from detect_backdoor.domain.purl import TargetIdentifier

from .base import PackageManager
from .http import HttpFetcher


class PypiManager(PackageManager):
    def __init__(self, http: HttpFetcher | None = None, base_url: str | None = None) -> None:
        super().__init__(http)
        self.base_url = (base_url or settings.PYPI_URL).rstrip("/")

    def ecosystem(self) -> str:
        return "pypi"

    def fetch(self, identifier: TargetIdentifier, dest_dir: Path) -> Path:
        if identifier.version:
            url = f"{self.base_url}/pypi/{identifier.name}/{identifier.version}/json"
        else:
            url = f"{self.base_url}/pypi/{identifier.name}/json"
        metadata = self.http.get_json(url)

        files = metadata.get("urls") or []
        if not files:
            raise KeyError(f"no distribution files published for {identifier.name}")

        # Source distributions carry everything; wheels are the fallback
        sdists = [f for f in files if f.get("packagetype") == "sdist"]
        chosen = sdists[0] if sdists else files[0]
        return self.download_and_extract(chosen["url"], chosen["filename"], dest_dir)
