from __future__ import annotations

from pathlib import Path

from detect_backdoor.core.config import settings
from detect_backdoor.domain.purl import TargetIdentifier

from .base import PackageManager
from .http import HttpFetcher


class NugetManager(PackageManager):
    def __init__(self, http: HttpFetcher | None = None, base_url: str | None = None) -> None:
        super().__init__(http)
        self.base_url = (base_url or settings.NUGET_URL).rstrip("/")

    def ecosystem(self) -> str:
        return "nuget"

    def fetch(self, identifier: TargetIdentifier, dest_dir: Path) -> Path:
        # The flat container only understands lower-case ids and versions
        package_id = identifier.name.lower()
        root = f"{self.base_url}/v3-flatcontainer/{package_id}"

        version = (identifier.version or "").lower()
        if not version:
            versions = self.http.get_json(f"{root}/index.json")["versions"]
            version = versions[-1]

        filename = f"{package_id}.{version}.nupkg"
        return self.download_and_extract(f"{root}/{version}/{filename}", filename, dest_dir)
