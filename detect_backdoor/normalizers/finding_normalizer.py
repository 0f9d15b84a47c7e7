from __future__ import annotations

from pathlib import Path

from detect_backdoor.domain.models import CONFIDENCES, SEVERITIES, Finding
from detect_backdoor.engines.base import RawMatch

from .util import get_rel_path

SEVERITY_ALIASES = {
    "high": "critical",
    "error": "critical",
    "medium": "important",
    "warning": "important",
    "low": "moderate",
    "note": "moderate",
    "info": "bestpractice",
}


def normalize_severity(value: str | None) -> str:
    s = (value or "").strip().lower().replace(" ", "").replace("_", "")
    if s in SEVERITIES:
        return s
    return SEVERITY_ALIASES.get(s, "moderate")


def normalize_confidence(value: str | None) -> str:
    c = (value or "").strip().lower()
    return c if c in CONFIDENCES else "medium"


def _positive(value) -> int | None:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return None
    return n if n > 0 else None


class FindingNormalizer:
    """Turns engine-native ``RawMatch`` records into ``Finding``s relative to the scanned root."""

    def normalize(self, raw: RawMatch, root: Path) -> Finding:
        offset = raw.offset if isinstance(raw.offset, int) and raw.offset >= 0 else None
        return Finding(
            rule_id=raw.rule_id,
            rule_name=raw.rule_name,
            description=raw.description or raw.rule_name,
            severity=normalize_severity(raw.severity),
            confidence=normalize_confidence(raw.confidence),
            file=get_rel_path(root, raw.file),
            line=_positive(raw.line),
            column=_positive(raw.column),
            end_line=_positive(raw.end_line),
            end_column=_positive(raw.end_column),
            offset=offset,
            excerpt=raw.excerpt,
            tags=tuple(raw.tags),
        )

    def normalize_all(self, raws: list[RawMatch], root: Path) -> list[Finding]:
        return [self.normalize(r, root) for r in raws]
