from __future__ import annotations

from pathlib import Path

from detect_backdoor.core.config import settings
from detect_backdoor.domain.purl import TargetIdentifier

from .base import PackageManager
from .http import HttpFetcher


class CargoManager(PackageManager):
    def __init__(self, http: HttpFetcher | None = None, base_url: str | None = None) -> None:
        super().__init__(http)
        self.base_url = (base_url or settings.CRATES_URL).rstrip("/")

    def ecosystem(self) -> str:
        return "cargo"

    def fetch(self, identifier: TargetIdentifier, dest_dir: Path) -> Path:
        version = identifier.version
        if not version:
            crate = self.http.get_json(f"{self.base_url}/api/v1/crates/{identifier.name}")["crate"]
            version = crate.get("max_stable_version") or crate["newest_version"]

        url = f"{self.base_url}/api/v1/crates/{identifier.name}/{version}/download"
        return self.download_and_extract(url, f"{identifier.name}-{version}.crate", dest_dir)
