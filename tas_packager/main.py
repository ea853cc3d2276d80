from __future__ import annotations

import logging
from typing import Optional

from .errors import PackagingError
from .initramfs import regenerate_initramfs
from .installer import install, remove
from .lib.args import HelpOnErrorParser
from .logging_utils import configure_logging
from .settings import InstallOptions, load_settings

logger = logging.getLogger(__name__)


DEFAULT_DESTDIR = "/"


def run(opts: InstallOptions) -> None:
    """Install or remove, then optionally regenerate the initramfs."""

    if opts.remove:
        remove(opts)
    else:
        install(opts)

    if opts.update_initramfs:
        regenerate_initramfs(opts.settings.platform)


def build_parser() -> HelpOnErrorParser:
    p = HelpOnErrorParser(
        prog="tas-install",
        description="Install the tas_agent package, with options to update initramfs and remove the package.",
    )
    p.add_argument("-d", "--destdir", default=DEFAULT_DESTDIR,
                   help=f"Set the destination directory (default: {DEFAULT_DESTDIR})")
    p.add_argument("-r", "--remove", action="store_true",
                   help="Remove the tas_agent package from the system")
    p.add_argument("-u", "--update-initramfs", action="store_true",
                   help="Update the initramfs of the running kernel afterwards; combines with -r")
    p.add_argument("-p", "--package-dir", default=".", help="Extracted package tree (default: .)")
    p.add_argument("--settings", default=None, help="Product settings (YAML)")
    p.add_argument("--log", default=None, help="Also write the log to this file")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    configure_logging(log_path=args.log, level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        opts = InstallOptions(
            dest_dir=args.destdir,
            package_dir=args.package_dir,
            remove=bool(args.remove),
            update_initramfs=bool(args.update_initramfs),
            settings=load_settings(args.settings),
        )
        run(opts)
    except PackagingError as e:
        logger.error("%s: %s", e.label, e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
