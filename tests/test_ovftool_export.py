import tempfile
import unittest
from pathlib import Path
from unittest.mock import Mock, patch

from esxi2pve.core.exceptions import CommandError, Fatal
from esxi2pve.vmware.ovftool_export import OvaExporter, ovftool_argv, vi_locator

from helpers import LOGGER, completed, make_settings


class TestOvftoolArgv(unittest.TestCase):
    def test_argv(self):
        s = make_settings("/mnt/vm-migration")
        self.assertEqual(
            ovftool_argv(s, s.ova_path),
            [
                "ovftool",
                "--sourceType=VI",
                "--acceptAllEulas",
                "--noSSLVerify",
                "--skipManifestCheck",
                "--diskMode=thin",
                "--name=web01",
                "vi://root@esxi01.lab/web01",
                "/mnt/vm-migration/web01.ova",
            ],
        )

    def test_username_is_url_quoted(self):
        s = make_settings("/tmp", esxi_username="administrator@vsphere.local")
        self.assertEqual(vi_locator(s), "vi://administrator%40vsphere.local@esxi01.lab/web01")

    def test_vm_name_is_url_quoted(self):
        s = make_settings("/tmp", vm_name="web 01#old?")
        self.assertEqual(vi_locator(s), "vi://root@esxi01.lab/web%2001%23old%3F")
        self.assertIn("--name=web 01#old?", ovftool_argv(s, s.ova_path))

    def test_password_never_in_argv(self):
        s = make_settings("/tmp")
        self.assertNotIn("s3cret", " ".join(ovftool_argv(s, s.ova_path)))


@patch("esxi2pve.core.utils.U.run_cmd")
class TestOvaExporter(unittest.TestCase):
    def setUp(self):
        self._td = tempfile.TemporaryDirectory()
        self.workdir = Path(self._td.name)
        self.settings = make_settings(self.workdir)

    def tearDown(self):
        self._td.cleanup()

    def _ovftool_writes_ova(self, logger, cmd, **kwargs):
        Path(cmd[-1]).write_bytes(b"ova")
        return completed(cmd)

    def test_declined_overwrite_aborts_before_export(self, run_cmd):
        self.settings.ova_path.write_bytes(b"old")
        confirm = Mock(return_value="n")
        with self.assertLogs(LOGGER, "ERROR") as logs:
            with self.assertRaises(Fatal) as cm:
                OvaExporter(LOGGER, self.settings, confirm).export()
        self.assertEqual(cm.exception.code, 1)
        self.assertIn("Export cancelled.", logs.output[-1])
        run_cmd.assert_not_called()
        self.assertEqual(self.settings.ova_path.read_bytes(), b"old")
        name, prompt, default, pattern = confirm.call_args.args
        self.assertEqual(name, "OVERWRITE_OVA")
        self.assertIn("already exists. Overwrite? (y/n)", prompt)
        self.assertEqual((default, pattern), ("y", "y|n"))

    def test_accepted_overwrite_replaces_file(self, run_cmd):
        self.settings.ova_path.write_bytes(b"old")
        run_cmd.side_effect = self._ovftool_writes_ova
        ova = OvaExporter(LOGGER, self.settings, Mock(return_value="y")).export()
        self.assertEqual(ova.read_bytes(), b"ova")

    def test_no_prompt_when_ova_is_absent(self, run_cmd):
        run_cmd.side_effect = self._ovftool_writes_ova
        confirm = Mock()
        OvaExporter(LOGGER, self.settings, confirm).export()
        confirm.assert_not_called()
        cmd = run_cmd.call_args.args[1]
        self.assertEqual(cmd[0], "ovftool")
        self.assertEqual(run_cmd.call_args.kwargs["input_text"], "s3cret\n")

    def test_failed_ovftool_is_fatal(self, run_cmd):
        run_cmd.side_effect = CommandError(code=1, msg="ovftool exited with status 1")
        with self.assertLogs(LOGGER, "ERROR"):
            with self.assertRaises(Fatal):
                OvaExporter(LOGGER, self.settings, Mock()).export()

    def test_missing_ova_after_success_is_fatal(self, run_cmd):
        run_cmd.return_value = completed()
        with self.assertLogs(LOGGER, "ERROR") as logs:
            with self.assertRaises(Fatal):
                OvaExporter(LOGGER, self.settings, Mock()).export()
        self.assertIn("was not created", logs.output[-1])


if __name__ == "__main__":
    unittest.main()
