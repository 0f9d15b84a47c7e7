from __future__ import annotations

import tempfile
from pathlib import Path

from detect_backdoor.core.config import settings
from detect_backdoor.domain.purl import TargetIdentifier

from .archive import extract_archive
from .base import PackageManager
from .http import HttpFetcher


class GemManager(PackageManager):
    def __init__(self, http: HttpFetcher | None = None, base_url: str | None = None) -> None:
        super().__init__(http)
        self.base_url = (base_url or settings.RUBYGEMS_URL).rstrip("/")

    def ecosystem(self) -> str:
        return "gem"

    def fetch(self, identifier: TargetIdentifier, dest_dir: Path) -> Path:
        version = identifier.version
        if not version:
            version = self.http.get_json(f"{self.base_url}/api/v1/gems/{identifier.name}.json")["version"]

        filename = f"{identifier.name}-{version}.gem"
        with tempfile.TemporaryDirectory(prefix="oss-gem-") as tmp:
            outer = Path(tmp) / "outer"
            archive = self.http.download(f"{self.base_url}/downloads/{filename}", Path(tmp) / filename)
            extract_archive(archive, outer)

            # A .gem is a plain tar whose data.tar.gz member holds the sources
            data = outer / "data.tar.gz"
            if not data.exists():
                raise KeyError(f"{filename} has no data.tar.gz member")
            return extract_archive(data, dest_dir)
