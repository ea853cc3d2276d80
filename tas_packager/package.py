from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional

from .errors import ArchiveFailure, PackagingError
from .lib.args import HelpOnErrorParser
from .logging_utils import configure_logging
from .package_steps import ALL_STEPS, PackageCtx
from .settings import PackageOptions, load_settings

logger = logging.getLogger(__name__)


DEFAULT_DESTDIR = "./target/package"
DEFAULT_ROOTCERT = "./config/root_cert.pem"
DEFAULT_CONFIG = ".env"


def run_package(opts: PackageOptions) -> Path:
    """Build the agent and produce `<DESTDIR>/<product>.tar.gz`.

    Steps run in order and the first failure aborts the run; no tarball is
    written unless every earlier step succeeded.
    """

    ctx = PackageCtx(opts=opts)
    for fn in ALL_STEPS:
        logger.debug("Running step %s", fn.__name__)
        fn(ctx=ctx)

    if ctx.tarball is None:
        raise ArchiveFailure("No tarball was produced")
    logger.info("Build and packaging completed successfully.")
    return ctx.tarball


def build_parser() -> HelpOnErrorParser:
    p = HelpOnErrorParser(
        prog="tas-package",
        description="Build tas_agent and package it with its initramfs scripts.",
    )
    p.add_argument("-d", "--destdir", default=DEFAULT_DESTDIR,
                   help=f"Destination directory for the package (default: {DEFAULT_DESTDIR})")
    p.add_argument("-r", "--root-cert", default=DEFAULT_ROOTCERT,
                   help=f"TAS root certificate (default: {DEFAULT_ROOTCERT})")
    p.add_argument("-e", "--config", default=DEFAULT_CONFIG,
                   help=f"TAS agent config file (default: {DEFAULT_CONFIG})")
    p.add_argument("-s", "--source-dir", default=".", help="Agent source tree (default: .)")
    p.add_argument("--toolchain", default=None, help="Path to cargo (default: discover)")
    p.add_argument("--settings", default=None, help="Product settings (YAML)")
    p.add_argument("--log", default=None, help="Also write the log to this file")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    configure_logging(log_path=args.log, level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        settings = load_settings(args.settings)
        if args.toolchain:
            settings = replace(settings, toolchain=args.toolchain)
        opts = PackageOptions(
            dest_dir=args.destdir,
            root_cert=args.root_cert,
            config=args.config,
            source_dir=args.source_dir,
            settings=settings,
        )
        run_package(opts)
    except PackagingError as e:
        logger.error("%s: %s", e.label, e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
