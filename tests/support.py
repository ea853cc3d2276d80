from __future__ import annotations

import os
import stat
import tarfile
from pathlib import Path

FAKE_CARGO = """#!/bin/sh
echo "$1" >> cargo.log
case "$1" in
  clean) rm -rf target/release ;;
  build) mkdir -p target/release && printf 'agent' > target/release/tas_agent ;;
esac
"""

FAILING_CARGO = """#!/bin/sh
echo "error: could not compile" >&2
exit 101
"""

TARGET_FILES = [
    "sbin/tas_agent",
    "etc/tas_agent/config",
    "etc/tas_agent/root_cert.pem",
    "usr/share/initramfs-tools/hooks/tas_agent",
    "usr/share/initramfs-tools/scripts/init-premount/tas_agent",
    "etc/initramfs-tools/modules",
]


def write_script(path: Path, body: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body, encoding="utf-8")
    os.chmod(path, path.stat().st_mode | stat.S_IXUSR)
    return path


def make_source_dir(root: Path) -> Path:
    """Agent checkout with initramfs scripts and a certificate/config pair."""

    initramfs = root / "scripts/initramfs/ubuntu"
    (initramfs / "hooks").mkdir(parents=True)
    (initramfs / "init-premount").mkdir(parents=True)
    (initramfs / "hooks/tas_agent").write_text("#!/bin/sh\n# hook\n", encoding="utf-8")
    (initramfs / "init-premount/tas_agent").write_text("#!/bin/sh\n# premount\n", encoding="utf-8")
    (initramfs / "modules").write_text("tpm_tis\ntpm_crb\n", encoding="utf-8")

    (root / "config").mkdir(parents=True)
    (root / "config/root_cert.pem").write_text("-----BEGIN CERTIFICATE-----\n", encoding="utf-8")
    (root / ".env").write_text("TAS_SERVER_URI=https://tas.example\n", encoding="utf-8")
    return root


def make_package_tree(root: Path) -> Path:
    """An extracted package tree, as the installer expects to find it."""

    files = {
        "sbin/tas_agent": "agent",
        "etc/tas_agent/config": "TAS_SERVER_URI=https://tas.example\n",
        "etc/tas_agent/root_cert.pem": "-----BEGIN CERTIFICATE-----\n",
        "ubuntu/hooks/tas_agent": "#!/bin/sh\n",
        "ubuntu/init-premount/tas_agent": "#!/bin/sh\n",
        "ubuntu/modules": "tpm_tis\n",
        "install.sh": "#!/bin/sh\n",
    }
    for rel, content in files.items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content, encoding="utf-8")
    return root


def is_executable(path: Path) -> bool:
    return bool(path.stat().st_mode & stat.S_IXUSR)


def extract(tarball: Path, dest: Path) -> None:
    with tarfile.open(tarball, "r:gz") as tar:
        if hasattr(tarfile, "data_filter"):
            tar.extractall(dest, filter="data")
        else:
            tar.extractall(dest)
