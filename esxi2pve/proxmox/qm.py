from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional

from ..config.settings import MigrationSettings
from ..core.exceptions import CommandError
from ..core.utils import U

# qm importdisk: "Successfully imported disk as 'unused0:local-lvm:vm-105-disk-0'"
_IMPORTED_RE = re.compile(r"imported disk as '(?:unused\d+:)?([^:']+):([^']+)'")


def parse_imported_volume(output: str) -> Optional[str]:
    m = _IMPORTED_RE.search(output or "")
    return m.group(2) if m else None


class QemuManager:
    """
    Thin wrapper around Proxmox's `qm` CLI. Every mutating call is checked;
    a failure stops the run with whatever VM state exists so far.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _qm(self, args: List[str], *, capture: bool = False) -> str:
        try:
            cp = U.run_cmd(self.logger, ["qm"] + args, check=True, capture=capture)
        except CommandError as e:
            U.die(self.logger, f"qm {args[0]} failed: {e}", 1)
        return (cp.stdout or "") if capture else ""

    def exists(self, vmid: str) -> bool:
        cp = U.run_cmd(self.logger, ["qm", "status", str(vmid)], check=False, capture=True)
        return cp.returncode == 0

    def create(self, settings: MigrationSettings, firmware: str) -> None:
        self.logger.info(f"Creating VM in Proxmox with {firmware} firmware, VLAN tag, and SCSI hardware...")
        self._qm([
            "create", settings.vm_id,
            "--name", settings.vm_name,
            "--memory", str(settings.vm_memory),
            "--cores", str(settings.vm_cores),
            "--net0", f"virtio,bridge={settings.net_bridge},tag={settings.vlan_tag}",
            "--bios", firmware,
            "--scsihw", "virtio-scsi-pci",
        ])
        self.logger.info(f"Created VM {settings.vm_id} ({settings.vm_name})")

    def enable_agent(self, vmid: str) -> None:
        self.logger.info("Enabling QEMU Guest Agent...")
        self._qm(["set", vmid, "--agent", "1"])

    def import_disk(self, vmid: str, image: Path, storage: str) -> str:
        """Returns the volume name the image landed on in `storage`."""
        self.logger.info(f"Importing disk to {storage} storage...")
        out = self._qm(["importdisk", vmid, str(image), storage], capture=True)
        volume = parse_imported_volume(out)
        if volume is None:
            volume = f"vm-{vmid}-disk-0"
            self.logger.warning(f"Could not read volume name from qm importdisk output; assuming {volume}")
        self.logger.info(f"Imported disk to {storage}:{volume}")
        return volume

    def attach_boot_disk(self, vmid: str, storage: str, volume: str) -> None:
        self.logger.info("Attaching disk to VM and setting it as the first boot device...")
        self._qm(["set", vmid, "--scsi0", f"{storage}:{volume}", "--boot", "c", "--bootdisk", "scsi0"])

    def enable_discard(self, vmid: str, storage: str, volume: str) -> None:
        self.logger.info("Enabling discard functionality...")
        self._qm(["set", vmid, "--scsi0", f"{storage}:{volume},discard=on"])

    def set_efidisk(self, vmid: str, storage: str, volume: str, size: str) -> None:
        self._qm([
            "set", vmid,
            "--efidisk0", f"{storage}:{volume},size={size},efitype=4m,pre-enrolled-keys=1",
        ])
