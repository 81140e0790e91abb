from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..config.settings import MigrationSettings, Prompter
from ..converters.guest_agent import GuestAgent
from ..converters.ovf_extractor import OVF
from ..converters.qemu_converter import Convert
from ..core.utils import U
from ..proxmox.efi_disk import EfiDisk
from ..proxmox.qm import QemuManager
from ..ssh.ssh_client import SSHClient
from ..ssh.ssh_config import SSHConfig
from ..vmware.firmware import UEFI, FirmwareProbe
from ..vmware.ovftool_export import OvaExporter


class Orchestrator:
    """
    Top-level migration runner, strictly sequential:

    - export the VM from ESXi as an OVA (ovftool)
    - unpack it, find the one disk, convert to raw, inject the guest agent
    - detect BIOS/UEFI from the source .vmx over ssh
    - create the Proxmox VM, import + attach the disk
    - empty the working directory
    - UEFI only: add an EFI vars disk

    Any failure raises Fatal; nothing is rolled back on the Proxmox side.
    """

    def __init__(
        self,
        logger: logging.Logger,
        settings: MigrationSettings,
        prompter: Prompter,
        *,
        qm: Optional[QemuManager] = None,
        firmware_probe: Optional[FirmwareProbe] = None,
        exporter: Optional[OvaExporter] = None,
    ):
        self.logger = logger
        self.settings = settings
        self.prompter = prompter
        self.qm = qm or QemuManager(logger)
        self.firmware_probe = firmware_probe or FirmwareProbe(
            logger,
            SSHClient(
                logger,
                SSHConfig(
                    host=settings.esxi_server,
                    user=settings.esxi_username,
                    password=settings.esxi_password,
                ),
            ),
        )
        self.exporter = exporter or OvaExporter(logger, settings, prompter.ask)
        self.firmware: Optional[str] = None
        self.volume: Optional[str] = None

    @property
    def workdir(self) -> Path:
        return self.settings.migration_dir

    def export(self) -> Path:
        return self.exporter.export()

    def create_proxmox_vm(self) -> None:
        s = self.settings
        self.logger.info("Extracting OVF from OVA...")
        OVF.extract_ova(self.logger, s.ova_path, self.workdir)
        ovf = OVF.find_descriptor(self.logger, self.workdir)
        if ovf is not None:
            OVF.disks_in_descriptor(self.logger, ovf)
        vmdk = OVF.find_disk(self.logger, self.workdir, s.vm_name)

        raw = Convert.to_raw(self.logger, vmdk, s.raw_path)
        GuestAgent.install(self.logger, raw)

        self.firmware = self.firmware_probe.detect(s)

        U.banner(self.logger, "Create Proxmox VM")
        self.qm.create(s, self.firmware)
        self.qm.enable_agent(s.vm_id)
        self.volume = self.qm.import_disk(s.vm_id, raw, s.storage_type)
        self.qm.attach_boot_disk(s.vm_id, s.storage_type, self.volume)
        self.qm.enable_discard(s.vm_id, s.storage_type, self.volume)

    def clean_migration_directory(self) -> None:
        self.logger.info(f"Cleaning up {self.workdir} directory...")
        removed = U.clean_dir(self.logger, self.workdir)
        self.logger.info(f"Cleaned up {self.workdir} directory ({removed} entries removed)")

    def add_efi_disk(self) -> None:
        EfiDisk(self.logger, self.qm).add(self.settings, self.volume)

    def run(self) -> int:
        s = self.settings
        U.banner(self.logger, f"Migrate {s.vm_name} from {s.esxi_server} to Proxmox VM {s.vm_id}")
        self.exporter.confirm_overwrite()
        try:
            self.export()
            self.create_proxmox_vm()
        finally:
            self.clean_migration_directory()

        if self.firmware == UEFI:
            self.add_efi_disk()
        else:
            self.logger.info("Skipping EFI disk creation for non-UEFI firmware type.")

        self.logger.info(f"Migration of {s.vm_name} finished: Proxmox VM {s.vm_id} ({self.firmware}) on {s.storage_type}")
        return 0
