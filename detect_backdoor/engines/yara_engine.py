from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator

import yara

from detect_backdoor.core.config import settings
from detect_backdoor.core.errors import AnalysisFailed

from .base import RawMatch, RuleEngine

logger = logging.getLogger(__name__)

RULE_SUFFIXES = {".yar", ".yara"}

# Instances reported per rule per file
MAX_INSTANCES_PER_RULE = 10
MAX_EXCERPT_CHARS = 200

CRITICAL_TAGS = {"backdoor", "malware", "trojan", "rootkit", "reverse_shell", "exploit", "rat"}
IMPORTANT_TAGS = {"exfiltration", "downloader", "dropper", "stealer", "obfuscation", "webshell", "persistence"}


def severity_from_tags(tags: list[str]) -> str:
    lowered = {t.lower() for t in tags}
    if lowered & CRITICAL_TAGS:
        return "critical"
    if lowered & IMPORTANT_TAGS:
        return "important"
    return "moderate"


def line_and_column(content: bytes, offset: int) -> tuple[int, int]:
    line = content.count(b"\n", 0, offset) + 1
    line_start = content.rfind(b"\n", 0, offset) + 1
    return line, offset - line_start + 1


def walk_files(root: Path) -> Iterator[Path]:
    """Regular files under ``root`` in sorted order; symlinks are not followed."""
    for dirpath, dirnames, filenames in os.walk(root, topdown=True, followlinks=False):
        dirnames.sort()
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if path.is_symlink() or not path.is_file():
                continue
            yield path


class YaraEngine(RuleEngine):
    """In-process YARA scanner. YARA has no built-in rules, so only the custom ruleset is ever loaded."""

    def __init__(self, timeout: int | None = None, max_file_bytes: int | None = None) -> None:
        self.timeout = timeout or settings.YARA_TIMEOUT
        self.max_file_bytes = max_file_bytes or settings.MAX_SCAN_FILE_BYTES

    def name(self) -> str:
        return "yara"

    def rule_files(self, rules_directory: Path) -> list[Path]:
        return sorted(p for p in rules_directory.rglob("*") if p.is_file() and p.suffix.lower() in RULE_SUFFIXES)

    def compile(self, rules_directory: Path) -> yara.Rules:
        filepaths = {
            p.relative_to(rules_directory).as_posix(): str(p)
            for p in self.rule_files(rules_directory)
        }
        try:
            return yara.compile(filepaths=filepaths)
        except yara.Error as exc:
            raise AnalysisFailed(str(rules_directory), f"ruleset does not compile: {exc}") from exc

    def scan(self, root: Path, rules_directory: Path, disable_default_rules: bool = True) -> list[RawMatch]:
        rules = self.compile(rules_directory)
        matches: list[RawMatch] = []

        for path in walk_files(root):
            try:
                size = path.stat().st_size
            except OSError as exc:
                raise AnalysisFailed(str(path), f"unreadable file: {exc}") from exc
            if size > self.max_file_bytes:
                logger.debug("Skipping %s (%d bytes over limit)", path, size)
                continue

            try:
                hits = rules.match(str(path), timeout=self.timeout)
            except yara.TimeoutError:
                logger.warning("YARA timeout scanning %s", path)
                continue
            except yara.Error as exc:
                raise AnalysisFailed(str(path), str(exc)) from exc

            if hits:
                matches.extend(self._to_raw(path, hits))

        return matches

    def _to_raw(self, path: Path, hits: list[yara.Match]) -> list[RawMatch]:
        try:
            content = path.read_bytes()
        except OSError as exc:
            raise AnalysisFailed(str(path), f"unreadable file: {exc}") from exc

        out: list[RawMatch] = []
        for hit in hits:
            meta = dict(hit.meta or {})
            tags = list(hit.tags or [])
            base = dict(
                engine="yara",
                rule_id=str(meta.get("id") or hit.rule),
                rule_name=str(meta.get("name") or hit.rule),
                file=str(path),
                description=str(meta.get("description") or hit.rule),
                severity=str(meta["severity"]) if meta.get("severity") else severity_from_tags(tags),
                confidence=str(meta["confidence"]) if meta.get("confidence") else None,
                tags=tags,
            )

            instances = [inst for s in hit.strings for inst in s.instances]
            instances.sort(key=lambda inst: inst.offset)
            if not instances:
                # Condition-only rule: the whole file matched
                out.append(RawMatch(**base))
                continue

            for inst in instances[:MAX_INSTANCES_PER_RULE]:
                line, column = line_and_column(content, inst.offset)
                end_line, end_column = line_and_column(content, inst.offset + max(inst.matched_length - 1, 0))
                excerpt = bytes(inst.matched_data).decode("utf-8", errors="replace")[:MAX_EXCERPT_CHARS]
                out.append(
                    RawMatch(
                        **base,
                        line=line,
                        column=column,
                        end_line=end_line,
                        end_column=end_column,
                        offset=inst.offset,
                        excerpt=excerpt,
                    )
                )
        return out
