from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class RawMatch:
    """One rule hit exactly as an engine reports it, before normalization."""

    engine: str
    rule_id: str
    rule_name: str
    file: str
    description: str = ""
    severity: str | None = None
    confidence: str | None = None
    line: int | None = None
    column: int | None = None
    end_line: int | None = None
    end_column: int | None = None
    offset: int | None = None
    excerpt: str | None = None
    tags: list[str] = field(default_factory=list)


class RuleEngine(ABC):
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def rule_files(self, rules_directory: Path) -> list[Path]:
        """Rule files this engine would load from ``rules_directory``."""

    @abstractmethod
    def scan(self, root: Path, rules_directory: Path, disable_default_rules: bool = True) -> list[RawMatch]:
        """Run only the rules under ``rules_directory`` against ``root``.

        Raises ``AnalysisFailed`` when the engine cannot complete the scan.
        """
