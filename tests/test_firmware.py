import unittest
from unittest.mock import Mock

from esxi2pve.ssh.ssh_client import SSHResult
from esxi2pve.vmware.firmware import FirmwareProbe, classify_firmware, vmx_path

from helpers import LOGGER, make_settings


def ssh_result(rc, stdout="", stderr=""):
    return SSHResult(rc=rc, stdout=stdout, stderr=stderr)


class TestClassifyFirmware(unittest.TestCase):
    def test_efi_marker_is_uefi(self):
        self.assertEqual(classify_firmware('firmware = "efi"\n'), "uefi")

    def test_bios_or_nothing_is_seabios(self):
        self.assertEqual(classify_firmware('firmware = "bios"'), "seabios")
        self.assertEqual(classify_firmware(""), "seabios")
        self.assertEqual(classify_firmware(None), "seabios")

    def test_vmx_path(self):
        self.assertEqual(vmx_path("datastore1", "web01"), "/vmfs/volumes/datastore1/web01/web01.vmx")


class TestFirmwareProbe(unittest.TestCase):
    def test_detects_uefi_over_ssh(self):
        ssh = Mock()
        ssh.run.return_value = ssh_result(0, 'firmware = "efi"\n')
        fw = FirmwareProbe(LOGGER, ssh).detect(make_settings("/tmp/w", esxi_datastore="ssd01"))
        self.assertEqual(fw, "uefi")
        cmd = ssh.run.call_args.args[0]
        self.assertEqual(cmd, "grep 'firmware =' /vmfs/volumes/ssd01/web01/web01.vmx")
        self.assertFalse(ssh.run.call_args.kwargs["check"])

    def test_no_firmware_line_is_seabios(self):
        ssh = Mock()
        ssh.run.return_value = ssh_result(1)
        self.assertEqual(FirmwareProbe(LOGGER, ssh).detect(make_settings("/tmp/w")), "seabios")

    def test_unreadable_vmx_warns_and_falls_back_to_seabios(self):
        ssh = Mock()
        ssh.run.return_value = ssh_result(2, "", "grep: No such file or directory")
        with self.assertLogs(LOGGER, "WARNING"):
            self.assertEqual(FirmwareProbe(LOGGER, ssh).detect(make_settings("/tmp/w")), "seabios")


if __name__ == "__main__":
    unittest.main()
