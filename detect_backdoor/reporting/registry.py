from __future__ import annotations

from detect_backdoor.domain.models import Report
from detect_backdoor.domain.schemas import OutputFormat, parse_format

from .base import ReportRenderer
from .sarif import SarifV1Renderer, SarifV2Renderer
from .text import TextRenderer

_RENDERERS: dict[OutputFormat, ReportRenderer] = {
    r.format(): r for r in (TextRenderer(), SarifV1Renderer(), SarifV2Renderer())
}


def get_renderer(fmt: str | OutputFormat) -> ReportRenderer:
    """Resolve a renderer; raises ``UnsupportedFormat`` for names outside the closed set."""
    return _RENDERERS[parse_format(fmt)]


def render(report: Report, fmt: str | OutputFormat) -> bytes:
    return get_renderer(fmt).render(report)
