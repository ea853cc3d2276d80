from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

from .errors import InvalidPackage
from .settings import Settings

logger = logging.getLogger(__name__)

INSTALL_SCRIPT_NAME = "install.sh"


@dataclass(frozen=True)
class PackageManifest:
    """The six paths, relative to the package tree root, of an installable package."""

    binary: str
    config: str
    root_cert: str
    hook: str
    premount: str
    modules: str

    @classmethod
    def for_settings(cls, settings: Settings) -> "PackageManifest":
        os_dir = settings.platform.subtree
        etc_dir = f"etc/{settings.product}"
        return cls(
            binary=f"sbin/{settings.binary_name}",
            config=f"{etc_dir}/config",
            root_cert=f"{etc_dir}/root_cert.pem",
            hook=f"{os_dir}/hooks/{settings.binary_name}",
            premount=f"{os_dir}/init-premount/{settings.binary_name}",
            modules=f"{os_dir}/modules",
        )

    @property
    def config_dir(self) -> str:
        return str(Path(self.config).parent)

    def members(self) -> Tuple[str, ...]:
        return (self.binary, self.config, self.root_cert, self.hook, self.premount, self.modules)

    def missing(self, tree: Path) -> List[str]:
        return [rel for rel in self.members() if not (tree / rel).is_file()]

    def validate(self, tree: Path) -> None:
        """Raise InvalidPackage naming the first absent member."""

        missing = self.missing(tree)
        if missing:
            for rel in missing:
                logger.error("Package member missing: %s", tree / rel)
            raise InvalidPackage(missing[0])


@dataclass(frozen=True)
class InstalledLayout:
    """Target-root paths touched by install and remove."""

    binary: Path
    config_dir: Path
    hook: Path
    premount: Path
    modules: Path

    @classmethod
    def for_root(cls, root: Path, settings: Settings) -> "InstalledLayout":
        plat = settings.platform
        name = settings.binary_name
        return cls(
            binary=root / "sbin" / name,
            config_dir=root / "etc" / settings.product,
            hook=root / plat.hooks_dir / name,
            premount=root / plat.premount_dir / name,
            modules=root / plat.modules_file,
        )

    @property
    def initramfs_artifacts(self) -> Tuple[Path, Path, Path]:
        return (self.hook, self.premount, self.modules)
