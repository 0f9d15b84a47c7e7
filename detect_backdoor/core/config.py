import os
from pathlib import Path

from pydantic import BaseModel

TOOL_NAME = "oss-detect-backdoor"
VERSION = "0.3.0"
INFORMATION_URI = "https://github.com/microsoft/OSSGadget"

BUNDLED_RULES_DIR = Path(__file__).resolve().parents[1] / "resources" / "backdoor_rules"


class Settings(BaseModel):
    # Ruleset / engine
    RULES_DIR: str = os.getenv("DETECT_BACKDOOR_RULES_DIR", str(BUNDLED_RULES_DIR))
    ENGINE: str = os.getenv("DETECT_BACKDOOR_ENGINE", "yara")
    APPINSPECTOR_BIN: str = os.getenv("APPINSPECTOR_BIN", "appinspector")
    APPINSPECTOR_TIMEOUT: int = int(os.getenv("APPINSPECTOR_TIMEOUT", "600"))
    YARA_TIMEOUT: int = int(os.getenv("YARA_TIMEOUT", "60"))
    MAX_SCAN_FILE_BYTES: int = int(os.getenv("MAX_SCAN_FILE_BYTES", str(10 * 1024 * 1024)))

    # Acquisition
    DOWNLOAD_DIR: str | None = os.getenv("DETECT_BACKDOOR_DOWNLOAD_DIR")
    MAX_WORKERS: int = int(os.getenv("DETECT_BACKDOOR_MAX_WORKERS", "1"))
    HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", "60"))
    MAX_EXTRACT_BYTES: int = int(os.getenv("MAX_EXTRACT_BYTES", str(512 * 1024 * 1024)))

    # Package registries
    NPM_REGISTRY_URL: str = os.getenv("NPM_REGISTRY_URL", "https://registry.npmjs.org")
    PYPI_URL: str = os.getenv("PYPI_URL", "https://pypi.org")
    CRATES_URL: str = os.getenv("CRATES_URL", "https://crates.io")
    RUBYGEMS_URL: str = os.getenv("RUBYGEMS_URL", "https://rubygems.org")
    NUGET_URL: str = os.getenv("NUGET_URL", "https://api.nuget.org")
    GITHUB_URL: str = os.getenv("GITHUB_URL", "https://github.com")


settings = Settings()
