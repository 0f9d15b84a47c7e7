from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, HTTPException, Response
from pydantic import BaseModel, Field

from detect_backdoor.core.config import settings
from detect_backdoor.core.containers import build_batch_runner
from detect_backdoor.core.errors import DownloadDirectoryUnavailable, RulesetUnavailable, UnknownEngine, UnsupportedFormat
from detect_backdoor.domain.schemas import AnalysisConfig, parse_format, supported_formats
from detect_backdoor.reporting.registry import get_renderer

router = APIRouter(prefix="/api", tags=["scan"])

# Build once at module level
_runner = build_batch_runner()


# ── Request schemas ───────────────────────────────────────────────
class ScanRequest(BaseModel):
    """Request body for scanning one or more packages."""

    targets: list[str] = Field(
        ...,
        min_length=1,
        description="Package URLs to analyze, in the order results should be reported.",
        json_schema_extra={"examples": [["pkg:npm/left-pad@1.3.0", "pkg:pypi/requests@2.31.0"]]},
    )
    format: str = Field("sarif-v2", description="Output format: `text`, `sarif-v1` or `sarif-v2`.")
    use_cache: bool = Field(False, description="Reuse packages already in the server's download directory.")
    engine: str | None = Field(None, description="Rule engine name. Defaults to the server setting.")


# ── Endpoints ─────────────────────────────────────────────────────
@router.get("/formats", summary="List output formats", response_description="Supported format names")
def list_formats() -> list[str]:
    return supported_formats()


@router.get("/engines", summary="List rule engines", response_description="Registered engine names")
def list_engines() -> list[str]:
    return _runner.engines.list()


@router.post(
    "/scan",
    summary="Scan packages for backdoors",
    response_description="The rendered report (SARIF JSON or plain text)",
)
def scan(req: ScanRequest) -> Response:
    """Download each package, run the backdoor ruleset over its source and
    return the report rendered in the requested format.

    A target that cannot be parsed, downloaded or analyzed is reported in
    its own slot; the rest of the batch still runs.
    """
    try:
        output_format = parse_format(req.format)
        renderer = get_renderer(output_format)
    except UnsupportedFormat as e:
        raise HTTPException(status_code=400, detail=str(e))

    config = AnalysisConfig(
        download_directory=Path(settings.DOWNLOAD_DIR) if settings.DOWNLOAD_DIR else None,
        use_cache=req.use_cache,
        rules_directory=Path(settings.RULES_DIR),
        output_format=output_format,
        engine=req.engine or settings.ENGINE,
        max_workers=settings.MAX_WORKERS,
    )

    try:
        report = _runner.run(req.targets, config)
    except UnknownEngine as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (RulesetUnavailable, DownloadDirectoryUnavailable) as e:
        raise HTTPException(status_code=503, detail=str(e))

    return Response(content=renderer.render(report), media_type=renderer.media_type())
