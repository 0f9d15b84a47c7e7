from __future__ import annotations

import logging
import shutil
from pathlib import Path

from git import Repo

from detect_backdoor.core.config import settings
from detect_backdoor.domain.purl import TargetIdentifier

from .base import PackageManager
from .http import HttpFetcher

logger = logging.getLogger(__name__)


class GitHubManager(PackageManager):
    def __init__(self, http: HttpFetcher | None = None, base_url: str | None = None) -> None:
        super().__init__(http)
        self.base_url = (base_url or settings.GITHUB_URL).rstrip("/")

    def ecosystem(self) -> str:
        return "github"

    def clone_url(self, identifier: TargetIdentifier) -> str:
        if not identifier.namespace:
            raise KeyError(f"github package URLs need an owner: {identifier.raw}")
        return f"{self.base_url}/{identifier.namespace}/{identifier.name}.git"

    def fetch(self, identifier: TargetIdentifier, dest_dir: Path) -> Path:
        url = self.clone_url(identifier)
        dest = dest_dir / identifier.name
        dest.mkdir(parents=True, exist_ok=True)

        # Shallow clone for speed; the version is a tag or branch name
        kwargs = {"depth": 1}
        if identifier.version:
            kwargs["branch"] = identifier.version
        logger.info("Cloning %s", url)
        Repo.clone_from(url, dest, **kwargs)

        git_dir = dest / ".git"
        if git_dir.exists():
            shutil.rmtree(git_dir, ignore_errors=True)
        return dest
