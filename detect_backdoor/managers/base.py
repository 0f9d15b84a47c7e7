from __future__ import annotations

import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from detect_backdoor.domain.purl import TargetIdentifier

from .archive import extract_archive
from .http import HttpFetcher


class PackageManager(ABC):
    """Downloads one published package version and extracts its sources."""

    def __init__(self, http: HttpFetcher | None = None) -> None:
        self.http = http or HttpFetcher()

    @abstractmethod
    def ecosystem(self) -> str: ...

    @abstractmethod
    def fetch(self, identifier: TargetIdentifier, dest_dir: Path) -> Path:
        """Download and extract ``identifier`` below ``dest_dir``; return the source root.

        Implementations let ``httpx.HTTPError``, ``KeyError`` and friends
        propagate; the cache service turns them into ``AcquisitionFailed``.
        """

    def download_and_extract(self, url: str, filename: str, dest_dir: Path) -> Path:
        with tempfile.TemporaryDirectory(prefix="oss-download-") as tmp:
            archive = self.http.download(url, Path(tmp) / filename)
            return extract_archive(archive, dest_dir)
