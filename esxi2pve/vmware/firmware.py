from __future__ import annotations

import logging
import shlex

from ..config.settings import MigrationSettings
from ..ssh.ssh_client import SSHClient

UEFI = "uefi"
SEABIOS = "seabios"


def vmx_path(datastore: str, vm_name: str) -> str:
    return f"/vmfs/volumes/{datastore}/{vm_name}/{vm_name}.vmx"


def classify_firmware(vmx_text: str) -> str:
    """
    Proxmox --bios value for a VM whose .vmx firmware line(s) are `vmx_text`.
    `firmware = "efi"` means UEFI; a missing line means legacy BIOS.
    """
    return UEFI if "efi" in (vmx_text or "") else SEABIOS


class FirmwareProbe:
    def __init__(self, logger: logging.Logger, ssh: SSHClient):
        self.logger = logger
        self.ssh = ssh

    def detect(self, settings: MigrationSettings) -> str:
        path = vmx_path(settings.esxi_datastore, settings.vm_name)
        self.logger.info(f"Inspecting {path} on {settings.esxi_server} for firmware type...")
        # grep exits 1 when there is no firmware line; that is a BIOS VM, not an error
        res = self.ssh.run(f"grep 'firmware =' {shlex.quote(path)}", check=False)
        if res.rc > 1:
            self.logger.warning(
                f"Could not read {path} (grep exit {res.rc}): {res.stderr.strip() or 'no output'}; assuming BIOS"
            )
        firmware = classify_firmware(res.stdout)
        self.logger.info(f"Detected firmware: {firmware}")
        return firmware
