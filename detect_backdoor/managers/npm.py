from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import quote

from detect_backdoor.core.config import settings
from detect_backdoor.domain.purl import TargetIdentifier

from .base import PackageManager
from .http import HttpFetcher

logger = logging.getLogger(__name__)


class NpmManager(PackageManager):
    def __init__(self, http: HttpFetcher | None = None, registry_url: str | None = None) -> None:
        super().__init__(http)
        self.registry_url = (registry_url or settings.NPM_REGISTRY_URL).rstrip("/")

    def ecosystem(self) -> str:
        return "npm"

    def metadata_url(self, identifier: TargetIdentifier) -> str:
        # Scoped packages are addressed as @scope%2Fname
        return f"{self.registry_url}/{quote(identifier.full_name, safe='@')}"

    def fetch(self, identifier: TargetIdentifier, dest_dir: Path) -> Path:
        metadata = self.http.get_json(self.metadata_url(identifier))
        version = identifier.version or metadata["dist-tags"]["latest"]
        versions = metadata.get("versions") or {}
        if version not in versions:
            raise KeyError(f"version {version} not published for {identifier.full_name}")

        tarball = versions[version]["dist"]["tarball"]
        logger.debug("Resolved %s@%s to %s", identifier.full_name, version, tarball)
        return self.download_and_extract(tarball, f"{identifier.name}-{version}.tgz", dest_dir)
