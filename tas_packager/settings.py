from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .errors import ConfigurationError


@dataclass(frozen=True)
class Platform:
    """Where a platform keeps its initramfs tooling on the target root."""

    platform_id: str
    subtree: str
    hooks_dir: str
    premount_dir: str
    modules_file: str
    regenerate_tool: str
    regenerate_args: Tuple[str, ...]


PLATFORMS: Dict[str, Platform] = {
    "ubuntu": Platform(
        platform_id="ubuntu",
        subtree="ubuntu",
        hooks_dir="usr/share/initramfs-tools/hooks",
        premount_dir="usr/share/initramfs-tools/scripts/init-premount",
        modules_file="etc/initramfs-tools/modules",
        regenerate_tool="update-initramfs",
        # kernel version is appended at run time
        regenerate_args=("-u", "-k"),
    ),
}

DEFAULT_PLATFORM = "ubuntu"


def get_platform(platform_id: str) -> Platform:
    try:
        return PLATFORMS[platform_id]
    except KeyError:
        raise ConfigurationError(
            f"Unsupported platform {platform_id!r} (expected one of: {', '.join(sorted(PLATFORMS))})"
        ) from None


def check_path_component(key: str, value: str) -> None:
    """Names joined onto the target root must stay a single path component."""

    if value in {"", ".", ".."} or "/" in value or "\\" in value or "\0" in value:
        raise ConfigurationError(f"Invalid {key} {value!r}: must be a plain file name")


@dataclass(frozen=True)
class Settings:
    product: str = "tas_agent"
    binary_name: str = "tas_agent"
    platform_id: str = DEFAULT_PLATFORM
    # Empty means "discover": PATH first, then the cargo home directories.
    toolchain: str = ""
    build_output_dir: str = "target/release"
    initramfs_scripts_dir: str = "scripts/initramfs"
    # Empty means the launcher shipped in tas_packager/data.
    install_script: str = ""

    def __post_init__(self) -> None:
        for key in ("product", "binary_name"):
            check_path_component(key, getattr(self, key))

    @property
    def platform(self) -> Platform:
        return get_platform(self.platform_id)

    @property
    def tarball_name(self) -> str:
        return f"{self.product}.tar.gz"


def load_settings(path: Optional[str]) -> Settings:
    """Load product settings from YAML. None returns the TAS agent defaults."""

    if not path:
        return Settings()

    p = Path(path)
    if not p.exists():
        raise ConfigurationError(f"Settings file not found: {path}")

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ConfigurationError("settings file must be YAML")

    try:
        import yaml  # type: ignore
    except ImportError as e:
        raise ConfigurationError("PyYAML is required to read the settings file") from e

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except (yaml.YAMLError, UnicodeDecodeError, OSError) as e:
        raise ConfigurationError(f"Invalid settings file {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigurationError("settings file must contain a mapping/object")

    return settings_from_mapping(raw)


def settings_from_mapping(raw: Dict[str, Any]) -> Settings:
    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigurationError(f"Unknown settings: {', '.join(unknown)}")

    settings = replace(Settings(), **{k: str(v) for k, v in raw.items() if v is not None})
    # Fail here rather than halfway through a run.
    get_platform(settings.platform_id)
    return settings


@dataclass(frozen=True)
class PackageOptions:
    dest_dir: str = "./target/package"
    root_cert: str = "./config/root_cert.pem"
    config: str = ".env"
    source_dir: str = "."
    settings: Settings = field(default_factory=Settings)


@dataclass(frozen=True)
class InstallOptions:
    dest_dir: str = "/"
    package_dir: str = "."
    remove: bool = False
    update_initramfs: bool = False
    settings: Settings = field(default_factory=Settings)
