from pathlib import Path


def get_rel_path(root: Path, filename: str) -> str:
    """
    Convert an engine-reported filename to a root-relative posix path.

    Handles three cases:
    1. Absolute path inside root     → strip root prefix
    2. Relative path with ./         → strip leading ./
    3. Fallback                      → return cleaned posix path
    """
    if not filename:
        return ""
    try:
        f = Path(filename.replace("\\", "/"))
        base = root.resolve()

        if f.is_absolute():
            return f.resolve().relative_to(base).as_posix()

        # Relative path that might already include root components
        f_resolved = (root / f).resolve()
        if f_resolved.is_relative_to(base):
            return f_resolved.relative_to(base).as_posix()

        return f.as_posix().removeprefix("./")
    except ValueError:
        # Absolute but outside root: keep the basename
        return Path(filename).name
