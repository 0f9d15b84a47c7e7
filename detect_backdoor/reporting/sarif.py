"""SARIF 2.1.0 / 1.0.0 renderers: one run per target, in input order."""

from __future__ import annotations

from detect_backdoor.core.config import INFORMATION_URI, TOOL_NAME, VERSION
from detect_backdoor.domain.models import Finding, Report, TargetResult
from detect_backdoor.domain.schemas import OutputFormat

from .base import ReportRenderer
from .sarif_models import (
    SarifArtifactLocation,
    SarifDriver,
    SarifInvocation,
    SarifLocation,
    SarifMessage,
    SarifNotification,
    SarifPhysicalLocation,
    SarifRegion,
    SarifReport,
    SarifReportingDescriptorReference,
    SarifResult,
    SarifRule,
    SarifRuleConfig,
    SarifRun,
    SarifTool,
    SarifV1Location,
    SarifV1Notification,
    SarifV1Region,
    SarifV1Report,
    SarifV1Result,
    SarifV1ResultFile,
    SarifV1Rule,
    SarifV1Run,
    SarifV1Tool,
)

SEVERITY_TO_LEVEL = {
    "critical": "error",
    "important": "error",
    "moderate": "warning",
    "bestpractice": "note",
    "manualreview": "note",
}


def sarif_level(severity: str) -> str:
    return SEVERITY_TO_LEVEL.get(severity, "warning")


def _rules_in_order(findings: tuple[Finding, ...]) -> dict[str, Finding]:
    # First occurrence wins; dict keeps insertion order
    rules: dict[str, Finding] = {}
    for f in findings:
        rules.setdefault(f.rule_id, f)
    return rules


def _run_properties(result: TargetResult) -> dict[str, str]:
    return {"packageUrl": result.package_url, "target": result.target}


def _result_properties(f: Finding) -> dict:
    props: dict = {"severity": f.severity, "confidence": f.confidence}
    if f.tags:
        props["tags"] = list(f.tags)
    return props


class SarifV2Renderer(ReportRenderer):
    def format(self) -> OutputFormat:
        return OutputFormat.SARIF_V2

    def render(self, report: Report) -> bytes:
        doc = SarifReport(runs=[self._run(r) for r in report.results])
        return doc.model_dump_json(by_alias=True, exclude_none=True, indent=2).encode("utf-8")

    def _run(self, result: TargetResult) -> SarifRun:
        findings = result.findings or ()
        rules = _rules_in_order(findings)
        index = {rule_id: i for i, rule_id in enumerate(rules)}

        driver = SarifDriver(
            name=TOOL_NAME,
            version=VERSION,
            informationUri=INFORMATION_URI,
            rules=[
                SarifRule(
                    id=f.rule_id,
                    name=f.rule_name,
                    shortDescription=SarifMessage(text=f.rule_name),
                    fullDescription=SarifMessage(text=f.description) if f.description else None,
                    defaultConfiguration=SarifRuleConfig(level=sarif_level(f.severity)),
                    properties={"tags": list(f.tags)} if f.tags else None,
                )
                for f in rules.values()
            ],
        )

        if result.error is not None:
            invocation = SarifInvocation(
                executionSuccessful=False,
                toolExecutionNotifications=[
                    SarifNotification(
                        level="error",
                        message=SarifMessage(text=result.error.message),
                        descriptor=SarifReportingDescriptorReference(id=result.error.kind),
                    )
                ],
            )
        else:
            invocation = SarifInvocation(executionSuccessful=True)

        return SarifRun(
            tool=SarifTool(driver=driver),
            invocations=[invocation],
            results=[self._result(f, index[f.rule_id]) for f in findings],
            properties=_run_properties(result),
        )

    @staticmethod
    def _result(f: Finding, rule_index: int) -> SarifResult:
        region = None
        if f.line is not None or f.offset is not None:
            region = SarifRegion(
                startLine=f.line,
                startColumn=f.column,
                endLine=f.end_line,
                endColumn=f.end_column,
                byteOffset=f.offset,
                snippet=SarifMessage(text=f.excerpt) if f.excerpt else None,
            )
        return SarifResult(
            ruleId=f.rule_id,
            ruleIndex=rule_index,
            level=sarif_level(f.severity),
            message=SarifMessage(text=f.description or f.rule_name),
            locations=[
                SarifLocation(
                    physicalLocation=SarifPhysicalLocation(
                        artifactLocation=SarifArtifactLocation(uri=f.file),
                        region=region,
                    )
                )
            ],
            partialFingerprints={"findingId/v1": f.id},
            properties=_result_properties(f),
        )


class SarifV1Renderer(ReportRenderer):
    def format(self) -> OutputFormat:
        return OutputFormat.SARIF_V1

    def render(self, report: Report) -> bytes:
        doc = SarifV1Report(runs=[self._run(r) for r in report.results])
        return doc.model_dump_json(by_alias=True, exclude_none=True, indent=2).encode("utf-8")

    def _run(self, result: TargetResult) -> SarifV1Run:
        findings = result.findings or ()
        rules = {
            rule_id: SarifV1Rule(
                id=rule_id,
                name=f.rule_name,
                shortDescription=f.rule_name,
                fullDescription=f.description or None,
                defaultLevel=sarif_level(f.severity),
            )
            for rule_id, f in _rules_in_order(findings).items()
        }

        notifications = None
        if result.error is not None:
            notifications = [
                SarifV1Notification(id=result.error.kind, level="error", message=result.error.message)
            ]

        return SarifV1Run(
            tool=SarifV1Tool(name=TOOL_NAME, version=VERSION, semanticVersion=VERSION),
            results=[self._result(f) for f in findings],
            rules=rules or None,
            toolNotifications=notifications,
            properties=_run_properties(result),
        )

    @staticmethod
    def _result(f: Finding) -> SarifV1Result:
        region = None
        if f.line is not None or f.offset is not None:
            region = SarifV1Region(
                startLine=f.line,
                startColumn=f.column,
                endLine=f.end_line,
                endColumn=f.end_column,
                offset=f.offset,
            )
        return SarifV1Result(
            ruleId=f.rule_id,
            level=sarif_level(f.severity),
            message=f.description or f.rule_name,
            locations=[SarifV1Location(resultFile=SarifV1ResultFile(uri=f.file, region=region))],
            snippet=f.excerpt,
            properties=_result_properties(f),
        )
