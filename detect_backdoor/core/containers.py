from __future__ import annotations

from detect_backdoor.engines.appinspector import AppInspectorEngine
from detect_backdoor.engines.registry import EngineRegistry
from detect_backdoor.engines.yara_engine import YaraEngine
from detect_backdoor.managers.cargo import CargoManager
from detect_backdoor.managers.gem import GemManager
from detect_backdoor.managers.github import GitHubManager
from detect_backdoor.managers.http import HttpFetcher
from detect_backdoor.managers.npm import NpmManager
from detect_backdoor.managers.nuget import NugetManager
from detect_backdoor.managers.pypi import PypiManager
from detect_backdoor.managers.registry import ManagerRegistry
from detect_backdoor.services.batch_service import BatchRunner
from detect_backdoor.services.cache_service import CacheService


def build_engine_registry() -> EngineRegistry:
    return EngineRegistry([YaraEngine(), AppInspectorEngine()])


def build_manager_registry(http: HttpFetcher | None = None) -> ManagerRegistry:
    """Register one package manager per supported ecosystem.

    All managers share one HTTP client so connections are pooled across
    the batch.
    """
    http = http or HttpFetcher()
    return ManagerRegistry(
        [
            NpmManager(http),
            PypiManager(http),
            CargoManager(http),
            GemManager(http),
            NugetManager(http),
            GitHubManager(http),
        ]
    )


def build_batch_runner(
    managers: ManagerRegistry | None = None,
    engines: EngineRegistry | None = None,
) -> BatchRunner:
    return BatchRunner(
        CacheService(managers or build_manager_registry()),
        engines or build_engine_registry(),
    )
