from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path

import httpx
from git import GitError

from detect_backdoor.core.errors import AcquisitionFailed
from detect_backdoor.domain.purl import TargetIdentifier
from detect_backdoor.domain.schemas import AnalysisConfig
from detect_backdoor.managers.archive import guess_extracted_root
from detect_backdoor.managers.registry import ManagerRegistry

logger = logging.getLogger(__name__)

# Cache key components never start with a dot, so this cannot shadow a real entry
PARTIAL_DIR = ".partial"


class CacheService:
    """
    Decides per identifier whether an existing extraction is reused or the
    package is fetched again. The cache is keyed by identifier only.
    """

    def __init__(self, managers: ManagerRegistry):
        self.managers = managers

    @staticmethod
    def target_dir(identifier: TargetIdentifier, download_root: Path) -> Path:
        return download_root / identifier.cache_key()

    @staticmethod
    def partial_dir(identifier: TargetIdentifier, download_root: Path) -> Path:
        return download_root / PARTIAL_DIR / identifier.cache_key()

    @staticmethod
    def is_cached(path: Path) -> bool:
        return path.is_dir() and any(path.iterdir())

    def resolve(self, identifier: TargetIdentifier, config: AnalysisConfig, download_root: Path) -> Path:
        target = self.target_dir(identifier, download_root)
        log_extra = {"target": str(identifier)}

        if config.use_cache and self.is_cached(target):
            logger.info("Using cached copy at %s", target, extra=log_extra)
            return guess_extracted_root(target)

        manager = self.managers.get(identifier.ecosystem)
        if manager is None:
            raise AcquisitionFailed(
                str(identifier),
                f"no package manager for ecosystem '{identifier.ecosystem}' (supported: {', '.join(self.managers.list())})",
            )

        # Fetch outside the cache tree so an interrupted fetch never looks like a cache hit
        partial = self.partial_dir(identifier, download_root)
        try:
            shutil.rmtree(partial, ignore_errors=True)
            partial.mkdir(parents=True)
            manager.fetch(identifier, partial)
            if target.exists():
                shutil.rmtree(target)
            target.parent.mkdir(parents=True, exist_ok=True)
            partial.rename(target)
        except AcquisitionFailed:
            raise
        except httpx.HTTPStatusError as exc:
            raise AcquisitionFailed(str(identifier), f"HTTP {exc.response.status_code} from {exc.request.url}") from exc
        except httpx.HTTPError as exc:
            raise AcquisitionFailed(str(identifier), f"network error: {exc}") from exc
        except GitError as exc:
            raise AcquisitionFailed(str(identifier), f"git error: {exc}") from exc
        except KeyError as exc:
            raise AcquisitionFailed(str(identifier), f"not found in registry: {exc}") from exc
        except (json.JSONDecodeError, TypeError) as exc:
            raise AcquisitionFailed(str(identifier), f"unexpected registry response: {exc}") from exc
        except OSError as exc:
            raise AcquisitionFailed(str(identifier), f"filesystem error: {exc}") from exc
        finally:
            shutil.rmtree(partial, ignore_errors=True)

        logger.info("Acquired into %s", target, extra=log_extra)
        return guess_extracted_root(target)
