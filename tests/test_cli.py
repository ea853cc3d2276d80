import contextlib
import io
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import tas_packager.main as install_cli
import tas_packager.package as package_cli
from tas_packager.errors import PackagingError

from tests.support import TARGET_FILES, make_package_tree, make_source_dir


class TestPackageCLI(unittest.TestCase):
    def setUp(self):
        self.tmp = Path(tempfile.mkdtemp(prefix="tas_cli_"))

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def test_defaults(self):
        ns = package_cli.build_parser().parse_args([])
        self.assertEqual(ns.destdir, "./target/package")
        self.assertEqual(ns.root_cert, "./config/root_cert.pem")
        self.assertEqual(ns.config, ".env")

    def test_help_exits_zero(self):
        out = io.StringIO()
        with contextlib.redirect_stdout(out), self.assertRaises(SystemExit) as cm:
            package_cli.main(["-h"])
        self.assertEqual(cm.exception.code, 0)
        self.assertIn("-d", out.getvalue())

    def test_unknown_flag_exits_one(self):
        err = io.StringIO()
        with contextlib.redirect_stderr(err), self.assertRaises(SystemExit) as cm:
            package_cli.main(["-x"])
        self.assertEqual(cm.exception.code, 1)
        self.assertIn("usage:", err.getvalue())

    def test_missing_root_cert_exits_one(self):
        src = make_source_dir(self.tmp / "src")
        dest = self.tmp / "pkg"

        with self.assertLogs("tas_packager.package", level="ERROR") as logs:
            rc = package_cli.main([
                "-d", str(dest),
                "-r", str(self.tmp / "nonexistent.pem"),
                "-e", str(src / ".env"),
                "-s", str(src),
            ])

        self.assertEqual(rc, 1)
        self.assertTrue(any("Root certificate not found" in m for m in logs.output))
        self.assertFalse((dest / "tas_agent.tar.gz").exists())

    def test_toolchain_flag_passed_through(self):
        src = make_source_dir(self.tmp / "src")
        with patch("tas_packager.package.run_package") as run_package:
            rc = package_cli.main(["-s", str(src), "--toolchain", "/opt/cargo/bin/cargo"])
        self.assertEqual(rc, 0)
        opts = run_package.call_args[0][0]
        self.assertEqual(opts.settings.toolchain, "/opt/cargo/bin/cargo")
        self.assertEqual(opts.source_dir, str(src))


class TestInstallCLI(unittest.TestCase):
    def setUp(self):
        self.tmp = Path(tempfile.mkdtemp(prefix="tas_cli_"))
        self.tree = make_package_tree(self.tmp / "pkg")
        self.root = self.tmp / "root"

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def test_flags(self):
        ns = install_cli.build_parser().parse_args(["-d", "/mnt", "-r", "-u"])
        self.assertEqual(ns.destdir, "/mnt")
        self.assertTrue(ns.remove)
        self.assertTrue(ns.update_initramfs)

    def test_default_destdir(self):
        ns = install_cli.build_parser().parse_args([])
        self.assertEqual(ns.destdir, "/")
        self.assertFalse(ns.remove)
        self.assertFalse(ns.update_initramfs)

    def test_unknown_flag_exits_one(self):
        with contextlib.redirect_stderr(io.StringIO()), self.assertRaises(SystemExit) as cm:
            install_cli.main(["--bogus"])
        self.assertEqual(cm.exception.code, 1)

    def test_install_then_remove(self):
        rc = install_cli.main(["-d", str(self.root), "-p", str(self.tree)])
        self.assertEqual(rc, 0)
        for rel in TARGET_FILES:
            self.assertTrue((self.root / rel).is_file(), rel)

        with self.assertLogs("tas_packager.installer", level="WARNING") as logs:
            rc = install_cli.main(["-d", str(self.root), "-r", "-p", str(self.tree)])

        self.assertEqual(rc, 0)
        self.assertTrue(any("recommend checking initrd image" in m for m in logs.output))
        self.assertFalse((self.root / "sbin/tas_agent").exists())
        self.assertFalse((self.root / "etc/tas_agent").exists())

    def test_invalid_package_exits_one(self):
        (self.tree / "ubuntu/modules").unlink()
        rc = install_cli.main(["-d", str(self.root), "-p", str(self.tree)])
        self.assertEqual(rc, 1)
        self.assertFalse(self.root.exists())

    def test_destdir_is_a_file_exits_one(self):
        self.root.write_text("not a directory", encoding="utf-8")
        rc = install_cli.main(["-d", str(self.root), "-p", str(self.tree)])
        self.assertEqual(rc, 1)

    def test_update_skipped_without_tool(self):
        with patch("tas_packager.initramfs.which", return_value=None):
            rc = install_cli.main(["-d", str(self.root), "-p", str(self.tree), "-u"])
        self.assertEqual(rc, 0)

    def test_update_failure_exits_one(self):
        with patch("tas_packager.main.regenerate_initramfs") as regen:
            regen.side_effect = PackagingError("Failed to update initramfs")
            rc = install_cli.main(["-d", str(self.root), "-p", str(self.tree), "-r", "-u"])
        self.assertEqual(rc, 1)
        regen.assert_called_once()


if __name__ == "__main__":
    unittest.main()
