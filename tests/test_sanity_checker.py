import tempfile
import unittest
from pathlib import Path
from unittest.mock import Mock, patch

from esxi2pve.core.exceptions import Fatal
from esxi2pve.core.sanity_checker import REQUIRED_TOOLS, SanityChecker

from helpers import LOGGER


class TestSanityChecker(unittest.TestCase):
    def test_required_tools(self):
        for tool in ("qm", "ovftool", "qemu-img", "virt-customize", "lvcreate", "ssh", "sshpass"):
            self.assertIn(tool, REQUIRED_TOOLS)

    def test_missing_tools_are_listed_and_fatal(self):
        present = {"qm", "ssh", "sshpass", "lvcreate", "qemu-img"}
        with tempfile.TemporaryDirectory() as td:
            checker = SanityChecker(LOGGER, Path(td))
            with patch("esxi2pve.core.utils.U.which", side_effect=lambda t: f"/usr/bin/{t}" if t in present else None):
                with self.assertLogs(LOGGER, "ERROR") as logs:
                    with self.assertRaises(Fatal) as cm:
                        checker.check_tools()
        self.assertEqual(cm.exception.code, 1)
        text = "\n".join(logs.output)
        self.assertIn("- ovftool", text)
        self.assertIn("- virt-customize", text)
        self.assertNotIn("- qm", text)

    def test_all_tools_present(self):
        with tempfile.TemporaryDirectory() as td:
            with patch("esxi2pve.core.utils.U.which", return_value="/usr/bin/x"):
                SanityChecker(LOGGER, Path(td)).check_tools()

    def test_workdir_is_created(self):
        with tempfile.TemporaryDirectory() as td:
            work = Path(td) / "vm-migration"
            SanityChecker(LOGGER, work).check_workdir()
            self.assertTrue(work.is_dir())
            self.assertEqual(list(work.iterdir()), [])

    def test_unwritable_workdir_is_fatal(self):
        with tempfile.TemporaryDirectory() as td:
            blocker = Path(td) / "file"
            blocker.write_text("x", encoding="utf-8")
            with self.assertLogs(LOGGER, "ERROR"):
                with self.assertRaises(Fatal):
                    SanityChecker(LOGGER, blocker / "sub").check_workdir()

    def test_low_disk_space_only_warns(self):
        with tempfile.TemporaryDirectory() as td:
            with patch("esxi2pve.core.sanity_checker.shutil.disk_usage") as du:
                du.return_value = Mock(total=100, used=99, free=1)
                with self.assertLogs(LOGGER, "WARNING"):
                    SanityChecker(LOGGER, Path(td)).check_disk_space()


if __name__ == "__main__":
    unittest.main()
