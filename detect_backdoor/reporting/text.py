from __future__ import annotations

from detect_backdoor.core.config import TOOL_NAME, VERSION
from detect_backdoor.domain.models import Finding, Report, TargetResult
from detect_backdoor.domain.schemas import OutputFormat

from .base import ReportRenderer


def _location(f: Finding) -> str:
    loc = f.file
    if f.line is not None:
        loc += f":{f.line}"
        if f.column is not None:
            loc += f":{f.column}"
    elif f.offset is not None:
        loc += f"@{f.offset}"
    return loc


def _target_block(result: TargetResult) -> list[str]:
    lines = [f"--[ {result.package_url} ]--"]
    if result.error is not None:
        lines.append(f"  ERROR {result.error.kind}: {result.error.message}")
        return lines

    findings = result.findings or ()
    if not findings:
        lines.append("  No findings.")
        return lines

    for f in findings:
        lines.append(f"  [{f.severity}/{f.confidence}] {f.rule_id} {f.rule_name}")
        lines.append(f"    {_location(f)}")
        if f.excerpt:
            # Matches may span lines; each one stays inside the finding's block
            lines.extend(f"    | {part.strip()}" for part in f.excerpt.strip().splitlines() if part.strip())
    return lines


class TextRenderer(ReportRenderer):
    def format(self) -> OutputFormat:
        return OutputFormat.TEXT

    def media_type(self) -> str:
        return "text/plain"

    def render(self, report: Report) -> bytes:
        lines = [f"{TOOL_NAME} {VERSION} - backdoor scan of {len(report.results)} target(s)", ""]
        for result in report.results:
            lines.extend(_target_block(result))
            lines.append("")

        s = report.summary()
        by_sev = ", ".join(f"{k}={v}" for k, v in s.by_severity.items() if v)
        lines.append(
            f"Summary: {s.targets} target(s), {s.failed} failed, {s.findings} finding(s)"
            + (f" ({by_sev})" if by_sev else "")
        )
        return ("\n".join(lines) + "\n").encode("utf-8")
