from __future__ import annotations

from abc import ABC, abstractmethod

from detect_backdoor.domain.models import Report
from detect_backdoor.domain.schemas import OutputFormat


class ReportRenderer(ABC):
    """Turns a completed report into bytes. Never sees a partial batch."""

    @abstractmethod
    def format(self) -> OutputFormat: ...

    @abstractmethod
    def render(self, report: Report) -> bytes: ...

    def media_type(self) -> str:
        return "application/json"
