from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from detect_backdoor.core.config import settings
from detect_backdoor.domain.purl import TargetIdentifier
from detect_backdoor.domain.schemas import AnalysisConfig
from detect_backdoor.engines.registry import EngineRegistry
from detect_backdoor.engines.yara_engine import YaraEngine
from detect_backdoor.main import app
from detect_backdoor.managers.base import PackageManager
from detect_backdoor.managers.registry import ManagerRegistry
from detect_backdoor.services.batch_service import BatchRunner
from detect_backdoor.services.cache_service import CacheService

EVAL_RULE = """
rule EvalCall : backdoor
{
    meta:
        id = "BD9000"
        name = "eval call"
        description = "Call to eval("
        severity = "important"
        confidence = "high"

    strings:
        $eval = "eval("

    condition:
        $eval
}
"""


class FakeManager(PackageManager):
    """Serves packages from a ``{full_name: {relpath: content}}`` map and records every fetch."""

    def __init__(self, ecosystem: str = "npm", packages: dict | None = None):
        super().__init__()
        self._ecosystem = ecosystem
        self.packages = packages or {}
        self.calls: list[str] = []

    def ecosystem(self) -> str:
        return self._ecosystem

    def fetch(self, identifier: TargetIdentifier, dest_dir: Path) -> Path:
        self.calls.append(str(identifier))
        files = self.packages[identifier.full_name]
        root = dest_dir / "package"
        for rel, content in files.items():
            p = root / rel
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_text(content, encoding="utf-8")
        return root


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch):
    """Keep tests independent of the developer's environment."""
    monkeypatch.setattr(settings, "DOWNLOAD_DIR", None)
    monkeypatch.setattr(settings, "ENGINE", "yara")
    monkeypatch.setattr(settings, "MAX_WORKERS", 1)


@pytest.fixture
def rules_dir(tmp_path) -> Path:
    d = tmp_path / "rules"
    d.mkdir()
    (d / "eval.yar").write_text(EVAL_RULE, encoding="utf-8")
    return d


@pytest.fixture
def npm_manager() -> FakeManager:
    return FakeManager(
        "npm",
        {
            "left-pad": {"index.js": "module.exports = function leftPad(s) { return s; };\n"},
            "evil-pkg": {"index.js": "const payload = '1';\neval(payload);\n", "README.md": "hello\n"},
        },
    )


@pytest.fixture
def runner(npm_manager) -> BatchRunner:
    return BatchRunner(CacheService(ManagerRegistry([npm_manager])), EngineRegistry([YaraEngine()]))


@pytest.fixture
def make_config(rules_dir):
    def _make(**kwargs) -> AnalysisConfig:
        kwargs.setdefault("rules_directory", rules_dir)
        return AnalysisConfig(**kwargs)

    return _make


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_manager():
    return FakeManager
