from __future__ import annotations
from pathlib import Path

def is_real_failure(engine: str, exit_code: int, artifact_path: Path | None) -> bool:
    engine = (engine or "").lower()

    # Application Inspector: 0 = matches found, 1 = no matches
    if engine == "appinspector":
        if exit_code not in (0, 1):
            return True
        return exit_code == 0 and not (artifact_path and artifact_path.exists())

    return exit_code != 0
