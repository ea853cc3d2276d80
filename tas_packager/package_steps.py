from __future__ import annotations

import logging
import os
import tarfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import (
    ArchiveFailure,
    BuildFailure,
    BuildOutputMissing,
    ConfigurationError,
    CopyFailure,
    InvalidPackage,
    MissingRootCert,
    ToolchainMissing,
)
from .lib.assets import clear_dir, copy_file, copy_tree, list_files, make_executable
from .lib.command import run_cmd, which
from .manifest import INSTALL_SCRIPT_NAME, PackageManifest
from .settings import PackageOptions, Settings

logger = logging.getLogger(__name__)


DEFAULT_INSTALL_SCRIPT = Path(__file__).resolve().parent / "data" / INSTALL_SCRIPT_NAME
SUDO_HOME_ROOT = Path("/home")


@dataclass
class PackageCtx:
    opts: PackageOptions
    toolchain: Optional[str] = None
    tarball: Optional[Path] = None

    @property
    def settings(self) -> Settings:
        return self.opts.settings

    @property
    def dest_dir(self) -> Path:
        return Path(self.opts.dest_dir)

    @property
    def source_dir(self) -> Path:
        return Path(self.opts.source_dir)

    @property
    def tree_dir(self) -> Path:
        return self.dest_dir / self.settings.product

    @property
    def build_output(self) -> Path:
        return self.source_dir / self.settings.build_output_dir / self.settings.binary_name

    @property
    def initramfs_src(self) -> Path:
        return self.source_dir / self.settings.initramfs_scripts_dir / self.settings.platform.subtree

    @property
    def install_script_src(self) -> Path:
        if self.settings.install_script:
            return Path(self.settings.install_script)
        return DEFAULT_INSTALL_SCRIPT

    @property
    def manifest(self) -> PackageManifest:
        return PackageManifest.for_settings(self.settings)


def step_00_prepare_destination(*, ctx: PackageCtx) -> None:
    dest = ctx.dest_dir
    if not str(ctx.opts.dest_dir):
        raise ConfigurationError("DESTDIR is not set. Please set it to the desired installation directory.")

    if not dest.is_dir():
        try:
            dest.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"Failed to create directory {dest}. Please check permissions.") from e
        logger.info("Created destination %s", dest)
        return

    try:
        clear_dir(dest)
    except OSError as e:
        raise ConfigurationError(f"Failed to clear directory {dest}. Please check permissions.") from e
    logger.info("Cleared destination %s", dest)


def step_01_validate_inputs(*, ctx: PackageCtx) -> None:
    if not Path(ctx.opts.root_cert).is_file():
        raise MissingRootCert(ctx.opts.root_cert)
    if not Path(ctx.opts.config).is_file():
        raise ConfigurationError(f"Config file not found: {ctx.opts.config}")


def find_toolchain(explicit: str = "") -> str:
    """Locate cargo: explicit setting, PATH, the sudo caller's home, then ours.

    Raises ToolchainMissing when nothing usable is found.
    """

    if explicit:
        if os.path.isfile(explicit) and os.access(explicit, os.X_OK):
            return explicit
        found = which(explicit)
        if found:
            return found
        raise ToolchainMissing(f"Configured toolchain not found: {explicit}")

    found = which("cargo")
    if found:
        return found

    candidates = []
    sudo_user = os.environ.get("SUDO_USER")
    if sudo_user:
        candidates.append(SUDO_HOME_ROOT / sudo_user / ".cargo/bin/cargo")
    candidates.append(Path.home() / ".cargo/bin/cargo")

    for c in candidates:
        if c.is_file():
            return str(c)
    raise ToolchainMissing("Cargo could not be found. Please install Rust and Cargo.")


def step_02_locate_toolchain(*, ctx: PackageCtx) -> None:
    toolchain = find_toolchain(ctx.settings.toolchain)
    logger.info("Using cargo: %s", toolchain)
    ctx.toolchain = toolchain


def step_03_build(*, ctx: PackageCtx) -> None:
    if not ctx.toolchain:
        raise ToolchainMissing("toolchain not located; run the locate step first")
    cwd = str(ctx.source_dir)

    # Always rebuild from scratch.
    for argv in ([ctx.toolchain, "clean"], [ctx.toolchain, "build", "--release"]):
        try:
            res = run_cmd(argv, cwd=cwd)
        except OSError as e:
            raise BuildFailure(f"Build failed to start: {e}") from e
        if not res.ok:
            raise BuildFailure(
                f"Build failed ({res.returncode}). Please check the output for errors.\n{res.stderr}"
            )

    if not ctx.build_output.is_file():
        raise BuildOutputMissing(f"Build output not found: {ctx.build_output}. Please check the build process.")


def step_04_layout_tree(*, ctx: PackageCtx) -> None:
    tree = ctx.tree_dir
    m = ctx.manifest

    copy_file(ctx.build_output, tree / m.binary)

    copy_file(Path(ctx.opts.config), tree / m.config)

    if not Path(ctx.opts.root_cert).is_file():
        raise MissingRootCert(ctx.opts.root_cert)
    copy_file(Path(ctx.opts.root_cert), tree / m.root_cert)

    os_dir = tree / ctx.settings.platform.subtree
    if not ctx.initramfs_src.is_dir():
        raise CopyFailure(str(os_dir), f"initramfs directory not found: {ctx.initramfs_src}")
    copy_tree(ctx.initramfs_src, os_dir)

    script = copy_file(ctx.install_script_src, tree / INSTALL_SCRIPT_NAME)
    make_executable(script)


def step_05_verify_tree(*, ctx: PackageCtx) -> None:
    try:
        ctx.manifest.validate(ctx.tree_dir)
    except InvalidPackage as e:
        raise CopyFailure(str(ctx.tree_dir / e.member), str(e)) from e

    logger.info("Success - package created in %s", ctx.tree_dir)
    try:
        files = list_files(ctx.tree_dir)
    except OSError as e:
        raise CopyFailure(str(ctx.tree_dir), f"Failed to list {ctx.tree_dir}: {e}") from e
    for rel in files:
        logger.info("  %s", rel)


def step_06_archive(*, ctx: PackageCtx) -> None:
    tarball = ctx.dest_dir / ctx.settings.tarball_name
    logger.info("Creating tar file...")
    try:
        with tarfile.open(tarball, "w:gz") as tar:
            tar.add(str(ctx.tree_dir), arcname=ctx.settings.product)
    except (OSError, tarfile.TarError) as e:
        if tarball.exists():
            tarball.unlink()
        raise ArchiveFailure(f"Failed to create tar file {tarball}: {e}") from e

    ctx.tarball = tarball
    logger.info("Package created successfully at %s", tarball)


ALL_STEPS = [
    step_00_prepare_destination,
    step_01_validate_inputs,
    step_02_locate_toolchain,
    step_03_build,
    step_04_layout_tree,
    step_05_verify_tree,
    step_06_archive,
]
