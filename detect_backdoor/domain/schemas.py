from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from detect_backdoor.core.errors import UnsupportedFormat


class OutputFormat(str, Enum):
    TEXT = "text"
    SARIF_V1 = "sarif-v1"
    SARIF_V2 = "sarif-v2"

    def __str__(self) -> str:
        return self.value


# Spellings accepted by earlier releases of the tool
FORMAT_ALIASES = {"sarifv1": OutputFormat.SARIF_V1, "sarifv2": OutputFormat.SARIF_V2}


def supported_formats() -> list[str]:
    return [f.value for f in OutputFormat]


def parse_format(value: str | OutputFormat) -> OutputFormat:
    if isinstance(value, OutputFormat):
        return value
    key = (value or "").strip().lower()
    if key in FORMAT_ALIASES:
        return FORMAT_ALIASES[key]
    try:
        return OutputFormat(key)
    except ValueError:
        raise UnsupportedFormat(str(value), supported_formats()) from None


class AnalysisConfig(BaseModel):
    """Run-wide options. Built once from CLI or API input, never mutated."""

    model_config = ConfigDict(frozen=True)

    download_directory: Path | None = Field(
        None, description="Where packages are downloaded and extracted. None means a temporary directory."
    )
    use_cache: bool = Field(False, description="Reuse an existing extraction instead of downloading again.")
    rules_directory: Path
    output_format: OutputFormat = OutputFormat.TEXT
    output_file: Path | None = None
    engine: str = "yara"
    max_workers: int = Field(1, ge=1, le=64)
