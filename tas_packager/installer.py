"""Install and remove an extracted package tree on a target root.

Neither operation is transactional. A failed install leaves earlier copies
in place; re-running install (overwrite) or remove (delete if present) is the
recovery path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .errors import CopyFailure
from .lib.assets import copy_file, copy_tree, make_executable, remove_path
from .manifest import InstalledLayout, PackageManifest
from .settings import InstallOptions, Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstallResult:
    dest_dir: Path
    installed: List[Path] = field(default_factory=list)


@dataclass(frozen=True)
class RemoveResult:
    dest_dir: Path
    removed: List[Path] = field(default_factory=list)
    initramfs_artifacts: bool = False


def install(opts: InstallOptions) -> InstallResult:
    settings = opts.settings
    src = Path(opts.package_dir)
    dest = Path(opts.dest_dir)
    manifest = PackageManifest.for_settings(settings)

    # Nothing on the target root is touched until the package is complete.
    manifest.validate(src)

    if not dest.is_dir():
        logger.info("Creating target root %s", dest)
        try:
            for sub in ("sbin", "etc"):
                (dest / sub).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CopyFailure(str(dest), f"Failed to create directory {dest}. Please check permissions: {e}") from e

    logger.info("Installing %s to %s", settings.product, dest)
    layout = InstalledLayout.for_root(dest, settings)
    installed: List[Path] = []

    binary = src / manifest.binary
    make_executable(binary)
    installed.append(copy_file(binary, layout.binary))

    copy_tree(src / manifest.config_dir, layout.config_dir)
    installed.append(layout.config_dir)

    for rel, target in ((manifest.hook, layout.hook), (manifest.premount, layout.premount)):
        script = src / rel
        make_executable(script)
        installed.append(copy_file(script, target))

    if layout.modules.exists():
        logger.warning("Replacing existing initramfs modules list %s (not merged)", layout.modules)
    installed.append(copy_file(src / manifest.modules, layout.modules))

    logger.info("Package installed successfully at %s", dest)
    return InstallResult(dest_dir=dest, installed=installed)


def remove(opts: InstallOptions) -> RemoveResult:
    settings: Settings = opts.settings
    dest = Path(opts.dest_dir)
    layout = InstalledLayout.for_root(dest, settings)
    removed: List[Path] = []

    logger.info("Removing %s from %s", settings.product, dest)

    for p in (layout.binary, layout.config_dir):
        if remove_path(p):
            removed.append(p)

    artifacts = False
    for p in layout.initramfs_artifacts:
        if remove_path(p):
            removed.append(p)
            artifacts = True

    logger.info("Package removed successfully from %s", dest)
    if artifacts and not opts.update_initramfs:
        logger.warning(
            "NO -u option specified and initramfs artifacts found on system, recommend checking initrd image."
        )

    return RemoveResult(dest_dir=dest, removed=removed, initramfs_artifacts=artifacts)
