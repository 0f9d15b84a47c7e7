from __future__ import annotations

import logging
from pathlib import Path

from detect_backdoor.core.errors import AnalysisFailed, RulesetUnavailable
from detect_backdoor.domain.models import Finding
from detect_backdoor.engines.base import RuleEngine
from detect_backdoor.normalizers.finding_normalizer import FindingNormalizer

logger = logging.getLogger(__name__)


class AnalysisService:
    """
    Runs the rule engine with default rules disabled and only the custom
    ruleset loaded, then normalizes raw matches into findings.
    """

    def __init__(self, engine: RuleEngine, normalizer: FindingNormalizer | None = None):
        self.engine = engine
        self.normalizer = normalizer or FindingNormalizer()

    def ensure_ruleset(self, rules_directory: Path) -> list[Path]:
        """Fail instead of scanning with an empty ruleset, which would look like a clean result."""
        if not rules_directory.exists():
            raise RulesetUnavailable(str(rules_directory), "directory does not exist")
        if not rules_directory.is_dir():
            raise RulesetUnavailable(str(rules_directory), "not a directory")
        files = self.engine.rule_files(rules_directory)
        if not files:
            raise RulesetUnavailable(
                str(rules_directory), f"no rule files for the {self.engine.name()} engine"
            )
        return files

    def analyze(self, local_path: Path, rules_directory: Path) -> list[Finding]:
        self.ensure_ruleset(rules_directory)

        if not local_path.exists():
            raise AnalysisFailed(str(local_path), "path does not exist")

        try:
            raw = self.engine.scan(local_path, rules_directory, disable_default_rules=True)
        except AnalysisFailed:
            raise
        except OSError as exc:
            raise AnalysisFailed(str(local_path), str(exc)) from exc

        # Engine order is kept as-is
        findings = self.normalizer.normalize_all(raw, local_path)
        logger.info("%s reported %d findings under %s", self.engine.name(), len(findings), local_path)
        return findings
