from __future__ import annotations

import logging
import platform as _platform

from .errors import EnvironmentFacilityMissing, InitramfsUpdateFailure
from .lib.command import run_cmd, which
from .settings import Platform

logger = logging.getLogger(__name__)


def running_kernel() -> str:
    return _platform.release()


def regenerate_initramfs(plat: Platform) -> bool:
    """Rebuild the initramfs of the running kernel.

    Returns False when the host has no regeneration tool; that is a skip,
    not a failure. A non-zero exit from the tool is fatal.
    """

    try:
        tool = _require_tool(plat.regenerate_tool)
    except EnvironmentFacilityMissing as e:
        logger.warning("%s Skipping initramfs update.", e)
        return False

    logger.info("Updating initramfs...")
    argv = [tool, *plat.regenerate_args, running_kernel()]
    res = run_cmd(argv)
    if not res.ok:
        raise InitramfsUpdateFailure(
            f"Failed to update initramfs ({res.returncode}). Please check the output for errors.\n{res.stderr}"
        )
    return True


def _require_tool(name: str) -> str:
    path = which(name)
    if not path:
        raise EnvironmentFacilityMissing(f"{name} command not found.")
    return path
