from __future__ import annotations

import logging
import os
import tempfile
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Sequence

from detect_backdoor.core.errors import (
    AcquisitionFailed,
    AnalysisFailed,
    DetectBackdoorError,
    DownloadDirectoryUnavailable,
    InvalidIdentifier,
    NoTargets,
    RulesetUnavailable,
)
from detect_backdoor.domain.models import ErrorDescriptor, Report, TargetResult
from detect_backdoor.domain.purl import TargetIdentifier, parse_target
from detect_backdoor.domain.schemas import AnalysisConfig
from detect_backdoor.engines.registry import EngineRegistry
from detect_backdoor.services.analysis_service import AnalysisService
from detect_backdoor.services.cache_service import CacheService

logger = logging.getLogger(__name__)

Target = str | TargetIdentifier


class KeyLocks:
    """One lock per key, dropped again once nobody holds or waits for it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        # key -> [lock, holders + waiters]
        self._entries: dict[str, list] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._entries.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._entries[key]


class BatchRunner:
    """
    Orchestrates: validate ruleset → per target (parse → acquire → analyze)
    → one result per input slot, in input order.

    A failing target is recorded in its slot and never aborts the batch.
    Nothing is retried.
    """

    def __init__(self, cache: CacheService, engines: EngineRegistry):
        self.cache = cache
        self.engines = engines
        # Shared across runs so concurrent API requests on one download root also serialize
        self.locks = KeyLocks()

    def analysis_for(self, config: AnalysisConfig) -> AnalysisService:
        return AnalysisService(self.engines.get(config.engine))

    def run(self, targets: Sequence[Target], config: AnalysisConfig) -> Report:
        if not targets:
            raise NoTargets()

        # Batch-fatal checks happen before any acquisition
        analysis = self.analysis_for(config)
        analysis.ensure_ruleset(config.rules_directory)

        slots: list[TargetResult | None] = [None] * len(targets)

        with self._download_root(config) as root:
            if config.max_workers == 1:
                for i, target in enumerate(targets):
                    logger.info("Processing %d/%d: %s", i + 1, len(targets), _raw(target))
                    slots[i] = self._process(target, config, analysis, root)
            else:
                workers = min(config.max_workers, len(targets))
                with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="detect-backdoor") as pool:
                    futures = {
                        pool.submit(self._process, target, config, analysis, root): i
                        for i, target in enumerate(targets)
                    }
                    for fut in as_completed(futures):
                        slots[futures[fut]] = fut.result()

        # Every slot is written exactly once above
        report = Report(format=config.output_format.value, results=list(slots))
        summary = report.summary()
        logger.info(
            "Batch complete: %d targets, %d failed, %d findings",
            summary.targets,
            summary.failed,
            summary.findings,
        )
        return report

    def _process(
        self,
        target: Target,
        config: AnalysisConfig,
        analysis: AnalysisService,
        root: Path,
    ) -> TargetResult:
        raw = _raw(target)
        try:
            identifier = target if isinstance(target, TargetIdentifier) else parse_target(target)
        except InvalidIdentifier as exc:
            logger.warning("Skipping %s: %s", raw, exc.reason)
            return TargetResult(target=raw, error=ErrorDescriptor.from_exception(exc))

        log_extra = {"target": str(identifier)}
        stage = AcquisitionFailed.__name__
        try:
            with self.locks.hold(str(identifier.cache_key())):
                local_path = self.cache.resolve(identifier, config, root)
                stage = AnalysisFailed.__name__
                findings = analysis.analyze(local_path, config.rules_directory)
        except RulesetUnavailable:
            raise
        except DetectBackdoorError as exc:
            logger.warning("Error processing %s: %s", raw, exc, extra=log_extra)
            return TargetResult(target=raw, identifier=identifier, error=ErrorDescriptor.from_exception(exc))
        except Exception as exc:
            logger.exception("Unexpected error processing %s", raw, extra=log_extra)
            return TargetResult(
                target=raw,
                identifier=identifier,
                error=ErrorDescriptor(kind=stage, message=f"{type(exc).__name__}: {exc}"),
            )

        return TargetResult(target=raw, identifier=identifier, findings=tuple(findings))

    @contextmanager
    def _download_root(self, config: AnalysisConfig) -> Iterator[Path]:
        if config.download_directory is not None:
            root = config.download_directory.expanduser().resolve()
            try:
                root.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise DownloadDirectoryUnavailable(str(root), exc.strerror or str(exc)) from exc
            if not os.access(root, os.W_OK | os.X_OK):
                raise DownloadDirectoryUnavailable(str(root), "not writable")
            yield root
            return

        if config.use_cache:
            logger.warning("Cache reuse has no effect without a download directory")
        try:
            tmp = tempfile.TemporaryDirectory(prefix="oss-detect-backdoor-")
        except OSError as exc:
            raise DownloadDirectoryUnavailable(tempfile.gettempdir(), exc.strerror or str(exc)) from exc
        with tmp as path:
            yield Path(path)


def _raw(target: Target) -> str:
    if isinstance(target, TargetIdentifier):
        return target.raw or str(target)
    return target
