from __future__ import annotations

import logging
import os
import shutil
import tarfile
import zipfile
from pathlib import Path

from detect_backdoor.core.config import settings
from detect_backdoor.core.errors import AcquisitionFailed

logger = logging.getLogger(__name__)


def _should_skip_member(member_name: str) -> bool:
    # Skip macOS resource forks and VCS metadata
    parts = [p for p in member_name.replace("\\", "/").split("/") if p]
    if not parts:
        return True
    if parts[0] == "__MACOSX":
        return True
    if ".git" in parts:
        return True
    if parts[-1] == ".DS_Store":
        return True
    return False


def _is_within_directory(base_dir: Path, target: Path) -> bool:
    return target.resolve().is_relative_to(base_dir.resolve())


def _check_size(total: int, max_bytes: int | None, archive: Path) -> None:
    if max_bytes and total > max_bytes:
        raise AcquisitionFailed(archive.name, f"extraction size limit exceeded ({max_bytes} bytes)")


def safe_extract_tar(archive: Path, dest: Path, max_bytes: int | None) -> None:
    """Block traversal and escaping links, cap the extracted size."""
    dest = dest.resolve()
    total = 0
    with tarfile.open(archive, "r:*") as tar:
        members = []
        for member in tar.getmembers():
            if _should_skip_member(member.name):
                continue
            if not _is_within_directory(dest, dest / member.name):
                raise AcquisitionFailed(archive.name, f"path traversal in archive: {member.name}")
            if member.issym() or member.islnk():
                link_target = member.linkname or ""
                if link_target.startswith("/") or not _is_within_directory(
                    dest, (dest / member.name).parent / link_target
                ):
                    logger.warning("Skipping link %s -> %s escaping the archive", member.name, link_target)
                    continue
            if member.isfile():
                total += member.size
                _check_size(total, max_bytes, archive)
            members.append(member)
        tar.extractall(dest, members=members, filter="data")


def safe_extract_zip(archive: Path, dest: Path, max_bytes: int | None) -> None:
    """Safely extract zip to dest, preventing Zip Slip."""
    dest = dest.resolve()
    with zipfile.ZipFile(archive, "r") as zf:
        members = [m for m in zf.infolist() if not _should_skip_member(m.filename)]

        def _normalized_name(name: str) -> str:
            # Windows-built archives may use backslashes
            return name.replace("\\", "/").lstrip("/")

        total = 0
        for member in members:
            if not _is_within_directory(dest, dest / _normalized_name(member.filename)):
                raise AcquisitionFailed(archive.name, f"path traversal in archive: {member.filename}")
            total += member.file_size
            _check_size(total, max_bytes, archive)

        for member in members:
            norm = _normalized_name(member.filename)
            out_path = dest / norm

            if member.is_dir() or norm.endswith("/"):
                out_path.mkdir(parents=True, exist_ok=True)
                continue

            out_path.parent.mkdir(parents=True, exist_ok=True)
            with zf.open(member, "r") as src, open(out_path, "wb") as dst:
                shutil.copyfileobj(src, dst)

            mode = (member.external_attr >> 16) & 0o777
            if mode:
                os.chmod(out_path, mode | 0o600)


def guess_extracted_root(work_dir: Path) -> Path:
    """Return the single top-level directory if there is exactly one, else work_dir."""
    entries = [p for p in work_dir.iterdir() if p.name not in {".DS_Store"}]
    top_dirs = [p for p in entries if p.is_dir()]
    top_files = [p for p in entries if p.is_file()]
    if len(top_dirs) == 1 and not top_files:
        return top_dirs[0]
    return work_dir


def extract_archive(archive: Path, dest: Path, max_bytes: int | None = None) -> Path:
    """Extract a tar (any compression) or zip archive into ``dest`` and return the source root."""
    if max_bytes is None:
        max_bytes = settings.MAX_EXTRACT_BYTES
    dest.mkdir(parents=True, exist_ok=True)

    try:
        if tarfile.is_tarfile(archive):
            safe_extract_tar(archive, dest, max_bytes)
        elif zipfile.is_zipfile(archive):
            safe_extract_zip(archive, dest, max_bytes)
        else:
            raise AcquisitionFailed(archive.name, "unrecognized archive format")
    except (tarfile.TarError, zipfile.BadZipFile, EOFError, OSError) as exc:
        raise AcquisitionFailed(archive.name, f"corrupt archive: {exc}") from exc

    return guess_extracted_root(dest)
