"""SARIF 2.1.0 and 1.0.0 output models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

SARIF_V2_SCHEMA = "https://json.schemastore.org/sarif-2.1.0.json"
SARIF_V1_SCHEMA = "http://json.schemastore.org/sarif-1.0.0"


# ── SARIF 2.1.0 ───────────────────────────────────────────────────
class SarifMessage(BaseModel):
    text: str


class SarifArtifactLocation(BaseModel):
    uri: str


class SarifRegion(BaseModel):
    startLine: int | None = None
    startColumn: int | None = None
    endLine: int | None = None
    endColumn: int | None = None
    byteOffset: int | None = None
    snippet: SarifMessage | None = None


class SarifPhysicalLocation(BaseModel):
    artifactLocation: SarifArtifactLocation
    region: SarifRegion | None = None


class SarifLocation(BaseModel):
    physicalLocation: SarifPhysicalLocation


class SarifRuleConfig(BaseModel):
    level: str = "warning"


class SarifRule(BaseModel):
    id: str
    name: str
    shortDescription: SarifMessage
    fullDescription: SarifMessage | None = None
    defaultConfiguration: SarifRuleConfig = Field(default_factory=SarifRuleConfig)
    properties: dict[str, Any] | None = None


class SarifDriver(BaseModel):
    name: str
    version: str
    informationUri: str
    rules: list[SarifRule] = Field(default_factory=list)


class SarifTool(BaseModel):
    driver: SarifDriver


class SarifReportingDescriptorReference(BaseModel):
    id: str


class SarifNotification(BaseModel):
    level: str = "error"
    message: SarifMessage
    descriptor: SarifReportingDescriptorReference | None = None


class SarifInvocation(BaseModel):
    executionSuccessful: bool
    toolExecutionNotifications: list[SarifNotification] | None = None


class SarifResult(BaseModel):
    ruleId: str
    ruleIndex: int | None = None
    level: str = "warning"
    message: SarifMessage
    locations: list[SarifLocation] = Field(default_factory=list)
    partialFingerprints: dict[str, str] | None = None
    properties: dict[str, Any] | None = None


class SarifRun(BaseModel):
    tool: SarifTool
    invocations: list[SarifInvocation] = Field(default_factory=list)
    results: list[SarifResult] = Field(default_factory=list)
    properties: dict[str, Any] | None = None


class SarifReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    schema_uri: str = Field(SARIF_V2_SCHEMA, alias="$schema")
    version: str = "2.1.0"
    runs: list[SarifRun] = Field(default_factory=list)


# ── SARIF 1.0.0 ───────────────────────────────────────────────────
class SarifV1Region(BaseModel):
    startLine: int | None = None
    startColumn: int | None = None
    endLine: int | None = None
    endColumn: int | None = None
    offset: int | None = None


class SarifV1ResultFile(BaseModel):
    uri: str
    region: SarifV1Region | None = None


class SarifV1Location(BaseModel):
    resultFile: SarifV1ResultFile


class SarifV1Result(BaseModel):
    ruleId: str
    level: str = "warning"
    message: str
    locations: list[SarifV1Location] = Field(default_factory=list)
    snippet: str | None = None
    properties: dict[str, Any] | None = None


class SarifV1Rule(BaseModel):
    id: str
    name: str
    shortDescription: str
    fullDescription: str | None = None
    defaultLevel: str = "warning"
    properties: dict[str, Any] | None = None


class SarifV1Tool(BaseModel):
    name: str
    version: str
    semanticVersion: str | None = None


class SarifV1Notification(BaseModel):
    id: str | None = None
    level: str = "error"
    message: str


class SarifV1Run(BaseModel):
    tool: SarifV1Tool
    results: list[SarifV1Result] = Field(default_factory=list)
    rules: dict[str, SarifV1Rule] | None = None
    toolNotifications: list[SarifV1Notification] | None = None
    properties: dict[str, Any] | None = None


class SarifV1Report(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    schema_uri: str = Field(SARIF_V1_SCHEMA, alias="$schema")
    version: str = "1.0.0"
    runs: list[SarifV1Run] = Field(default_factory=list)
