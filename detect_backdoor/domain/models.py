from __future__ import annotations

from dataclasses import asdict, dataclass, field
from hashlib import sha1
from typing import Any, Literal

from detect_backdoor.domain.purl import TargetIdentifier

Severity = Literal["critical", "important", "moderate", "bestpractice", "manualreview"]
Confidence = Literal["high", "medium", "low"]

SEVERITIES: tuple[str, ...] = ("critical", "important", "moderate", "bestpractice", "manualreview")
CONFIDENCES: tuple[str, ...] = ("high", "medium", "low")


@dataclass(frozen=True)
class Finding:
    rule_id: str
    rule_name: str
    description: str
    severity: Severity
    confidence: Confidence
    file: str
    line: int | None = None
    column: int | None = None
    end_line: int | None = None
    end_column: int | None = None
    offset: int | None = None
    excerpt: str | None = None
    tags: tuple[str, ...] = ()

    @property
    def id(self) -> str:
        base = f"{self.rule_id}|{self.file}|{self.line}|{self.column}|{self.offset}|{self.excerpt}"
        return sha1(base.encode("utf-8")).hexdigest()

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["tags"] = list(self.tags)
        d["id"] = self.id
        return d


@dataclass(frozen=True)
class ErrorDescriptor:
    kind: str
    message: str

    @classmethod
    def from_exception(cls, exc: Exception) -> "ErrorDescriptor":
        return cls(kind=getattr(exc, "kind", type(exc).__name__), message=str(exc))


@dataclass(frozen=True)
class TargetResult:
    """Outcome for one input target: findings (possibly empty) or an error."""

    target: str
    identifier: TargetIdentifier | None = None
    findings: tuple[Finding, ...] | None = None
    error: ErrorDescriptor | None = None

    def __post_init__(self) -> None:
        if (self.findings is None) == (self.error is None):
            raise ValueError("TargetResult needs exactly one of findings or error")

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def package_url(self) -> str:
        return str(self.identifier) if self.identifier else self.target


@dataclass
class Summary:
    targets: int
    failed: int
    findings: int
    by_severity: dict[str, int]


@dataclass
class Report:
    format: str
    results: list[TargetResult] = field(default_factory=list)

    def summary(self) -> Summary:
        by_sev = {k: 0 for k in SEVERITIES}
        failed = 0
        total = 0
        for r in self.results:
            if not r.ok:
                failed += 1
                continue
            for f in r.findings or ():
                by_sev[f.severity] = by_sev.get(f.severity, 0) + 1
                total += 1
        return Summary(targets=len(self.results), failed=failed, findings=total, by_severity=by_sev)
