from fastapi import FastAPI

from detect_backdoor.api.scan_routes import router as scan_router
from detect_backdoor.core.config import VERSION
from detect_backdoor.core.logging import setup_logging

setup_logging()

tags_metadata = [
    {
        "name": "scan",
        "description": "Download packages by package URL and scan their source with the backdoor ruleset.",
    },
    {"name": "health", "description": "Liveness probe."},
]

app = FastAPI(
    title="OSS Detect Backdoor",
    version=VERSION,
    description="Looks for signs of backdoors in published open source packages.",
    openapi_tags=tags_metadata,
)

app.include_router(scan_router)


@app.get("/health", tags=["health"], summary="Health check")
def health() -> dict[str, str]:
    return {"status": "healthy", "version": VERSION}
