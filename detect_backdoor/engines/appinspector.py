from __future__ import annotations

import json
import logging
import shutil
import subprocess
import tempfile
from pathlib import Path

from detect_backdoor.core.config import settings
from detect_backdoor.core.errors import AnalysisFailed
from detect_backdoor.core.util import run_cmd

from .base import RawMatch, RuleEngine
from .failure_policy import is_real_failure

logger = logging.getLogger(__name__)


class AppInspectorEngine(RuleEngine):
    """Wraps the Application Inspector CLI with its default rules switched off (``-i``)."""

    def __init__(self, binary: str | None = None, timeout_sec: int | None = None) -> None:
        self.binary = binary or settings.APPINSPECTOR_BIN
        self.timeout_sec = timeout_sec or settings.APPINSPECTOR_TIMEOUT

    def name(self) -> str:
        return "appinspector"

    def rule_files(self, rules_directory: Path) -> list[Path]:
        return sorted(p for p in rules_directory.rglob("*.json") if p.is_file())

    def scan(self, root: Path, rules_directory: Path, disable_default_rules: bool = True) -> list[RawMatch]:
        if shutil.which(self.binary) is None:
            raise AnalysisFailed(str(root), f"{self.binary} not installed (exit_code=127)")

        # Keep the artifact outside the scanned tree
        with tempfile.TemporaryDirectory(prefix="appinspector-") as tmp:
            artifact = Path(tmp) / "appinspector.json"
            cmd = [
                self.binary,
                "analyze",
                "-s", str(root),
                "-r", str(rules_directory),
                "-f", "json",
                "-o", str(artifact),
                "--no-show-progress",
            ]
            if disable_default_rules:
                cmd.append("-i")

            logger.debug("Running %s", " ".join(cmd))
            try:
                r = run_cmd(cmd, cwd=root, timeout_sec=self.timeout_sec)
            except subprocess.TimeoutExpired as exc:
                raise AnalysisFailed(str(root), f"{self.binary} timed out after {self.timeout_sec}s") from exc
            except OSError as exc:
                raise AnalysisFailed(str(root), f"{self.binary} could not be started: {exc}") from exc

            if is_real_failure(self.name(), r.exit_code, artifact):
                raise AnalysisFailed(
                    str(root), f"{self.binary} failed (exit_code={r.exit_code}): {(r.stderr or r.stdout)[-2000:]}"
                )

            if not artifact.exists():
                return []
            try:
                data = json.loads(artifact.read_text(encoding="utf-8") or "{}")
            except json.JSONDecodeError as exc:
                raise AnalysisFailed(str(root), f"unreadable {self.binary} output: {exc}") from exc

        return parse_detailed_matches(data)


def parse_detailed_matches(data: dict) -> list[RawMatch]:
    matches = (data.get("metaData") or {}).get("detailedMatchList") or []
    out: list[RawMatch] = []
    for m in matches:
        boundary = m.get("boundary") or {}
        out.append(
            RawMatch(
                engine="appinspector",
                rule_id=str(m.get("ruleId") or m.get("ruleName") or "unknown"),
                rule_name=str(m.get("ruleName") or m.get("ruleId") or "unknown"),
                file=str(m.get("fileName") or ""),
                description=str(m.get("ruleDescription") or ""),
                severity=m.get("severity"),
                confidence=m.get("confidence"),
                line=m.get("startLocationLine"),
                column=m.get("startLocationColumn"),
                end_line=m.get("endLocationLine"),
                end_column=m.get("endLocationColumn"),
                offset=boundary.get("index"),
                excerpt=m.get("sample") or m.get("excerpt"),
                tags=list(m.get("tags") or []),
            )
        )
    return out
