from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    CONFIGURATION = "ConfigurationError"
    MISSING_ROOT_CERT = "MissingRootCert"
    TOOLCHAIN_MISSING = "ToolchainMissing"
    BUILD_FAILURE = "BuildFailure"
    BUILD_OUTPUT_MISSING = "BuildOutputMissing"
    COPY_FAILED = "CopyFailed"
    INVALID_PACKAGE = "InvalidPackage"
    ARCHIVE_FAILURE = "ArchiveFailure"
    FACILITY_MISSING = "EnvironmentFacilityMissing"
    INITRAMFS_UPDATE_FAILURE = "InitramfsUpdateFailure"


class PackagingError(RuntimeError):
    """Fatal lifecycle condition. The CLI maps every instance to exit 1."""

    kind: ErrorKind = ErrorKind.CONFIGURATION

    @property
    def label(self) -> str:
        return self.kind.value


class ConfigurationError(PackagingError):
    kind = ErrorKind.CONFIGURATION


class MissingRootCert(ConfigurationError):
    kind = ErrorKind.MISSING_ROOT_CERT

    def __init__(self, path: str) -> None:
        super().__init__(f"Root certificate not found: {path}")
        self.path = path


class ToolchainMissing(PackagingError):
    kind = ErrorKind.TOOLCHAIN_MISSING


class BuildFailure(PackagingError):
    kind = ErrorKind.BUILD_FAILURE


class BuildOutputMissing(BuildFailure):
    kind = ErrorKind.BUILD_OUTPUT_MISSING


class CopyFailure(PackagingError):
    kind = ErrorKind.COPY_FAILED

    def __init__(self, target: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"Failed to copy to {target}. Please check permissions.")
        self.target = target

    @property
    def label(self) -> str:
        return f"{self.kind.value}:{self.target}"


class InvalidPackage(PackagingError):
    kind = ErrorKind.INVALID_PACKAGE

    def __init__(self, member: str) -> None:
        super().__init__(f"Package invalid, {member} not found. Please check the build process.")
        self.member = member


class ArchiveFailure(PackagingError):
    kind = ErrorKind.ARCHIVE_FAILURE


class EnvironmentFacilityMissing(PackagingError):
    """Host tool absent. Callers log and skip instead of aborting."""

    kind = ErrorKind.FACILITY_MISSING


class InitramfsUpdateFailure(PackagingError):
    kind = ErrorKind.INITRAMFS_UPDATE_FAILURE

