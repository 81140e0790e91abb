from __future__ import annotations

import logging
import re
from typing import Optional

from ..config.settings import MigrationSettings
from ..core.exceptions import CommandError, Fatal
from ..core.utils import U
from .qm import QemuManager


def efi_volume_name(vmid: str, imported: Optional[str] = None) -> str:
    """Next disk slot after the imported system disk (vm-<id>-disk-0 if unknown)."""
    index = 0
    m = re.fullmatch(rf"vm-{re.escape(vmid)}-disk-(\d+)", imported or "")
    if m:
        index = int(m.group(1))
    return f"vm-{vmid}-disk-{index + 1}"


class EfiDisk:
    """
    UEFI guests need an EFI vars disk. It is carved out of the LVM volume
    group directly, then handed to the VM as efidisk0.
    """

    def __init__(self, logger: logging.Logger, qm: QemuManager):
        self.logger = logger
        self.qm = qm

    def add(self, settings: MigrationSettings, imported: Optional[str] = None) -> str:
        U.banner(self.logger, "Add EFI disk")
        volume = efi_volume_name(settings.vm_id, imported)

        self.logger.info("Creating EFI disk as a logical volume...")
        try:
            U.run_cmd(
                self.logger,
                ["lvcreate", "-L", settings.efi_disk_size, "-n", volume, settings.efi_vg_name],
                check=True,
                capture=True,
            )
        except CommandError:
            U.die(self.logger, "Failed to create EFI disk logical volume.", 1)
        self.logger.info(f"Created EFI disk as a logical volume {settings.efi_vg_name}/{volume}")

        self.logger.info("Attaching EFI disk to VM...")
        try:
            self.qm.set_efidisk(settings.vm_id, settings.storage_type, volume, settings.efi_disk_size)
        except Fatal:
            U.die(self.logger, "Failed to add EFI disk to VM.", 1)
        self.logger.info("Added EFI disk to the VM!")
        return volume
