from __future__ import annotations

import logging
import os
import shutil
import stat
from pathlib import Path

from ..errors import CopyFailure

logger = logging.getLogger(__name__)

_EXEC_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


def copy_file(src: Path, dst: Path) -> Path:
    """Copy one file, preserving mode. `dst` may be a directory.

    Missing parent directories are created. Returns the written path.
    """

    if not src.is_file():
        raise CopyFailure(str(dst), f"Source file not found: {src}")

    out = dst / src.name if dst.is_dir() else dst
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, out)
    except OSError as e:
        raise CopyFailure(str(out), f"Failed to copy {src} to {out}: {e}") from e

    if not out.is_file():
        raise CopyFailure(str(out), f"{out} not found after copy")
    logger.debug("Copied %s -> %s", src, out)
    return out


def copy_tree(src: Path, dst: Path) -> None:
    """Merge `src` into `dst`, overwriting files that already exist."""

    if not src.is_dir():
        raise CopyFailure(str(dst), f"Source directory not found: {src}")

    try:
        dst.mkdir(parents=True, exist_ok=True)
        for item in sorted(src.rglob("*")):
            out = dst / item.relative_to(src)
            if item.is_dir():
                out.mkdir(parents=True, exist_ok=True)
            else:
                out.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(item, out)
    except OSError as e:
        raise CopyFailure(str(dst), f"Failed to copy {src} to {dst}: {e}") from e

    if not dst.is_dir():
        raise CopyFailure(str(dst), f"{dst} not found after copy")
    logger.debug("Copied tree %s -> %s", src, dst)


def make_executable(path: Path) -> None:
    try:
        mode = path.stat().st_mode
        os.chmod(path, mode | _EXEC_BITS)
    except OSError as e:
        raise CopyFailure(str(path), f"Failed to make {path} executable: {e}") from e


def clear_dir(path: Path) -> None:
    """Remove everything inside `path`, keeping the directory itself."""

    for child in path.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()


def remove_path(path: Path) -> bool:
    """Delete a file or directory tree. Returns False if nothing was there."""

    if not path.exists() and not path.is_symlink():
        return False
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except OSError as e:
        raise CopyFailure(str(path), f"Failed to remove {path}: {e}") from e
    return True


def list_files(root: Path) -> list[str]:
    return sorted(str(p.relative_to(root)) for p in root.rglob("*") if p.is_file())
