from __future__ import annotations

import getpass
import logging
import os
import re
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Set

from ..core.utils import U

DEFAULT_MIGRATION_DIR = "/mnt/vm-migration"

VM_ID_PATTERN = r"[0-9]{3,}"
VLAN_TAG_PATTERN = r"[1-9][0-9]{0,2}|[1-3][0-9]{3}|40[0-8][0-9]|409[0-4]"
STORAGE_PATTERN = r"local-lvm|local-zfs"
YES_NO_PATTERN = r"y|n"


@dataclass(frozen=True)
class MigrationSettings:
    esxi_server: str
    esxi_username: str
    esxi_password: str
    vm_name: str
    vlan_tag: str
    vm_id: str
    storage_type: str

    # not prompted; environment/config only
    migration_dir: Path = Path(DEFAULT_MIGRATION_DIR)
    esxi_datastore: str = "datastore"
    vm_memory: int = 2048
    vm_cores: int = 2
    net_bridge: str = "vmbr0"
    efi_vg_name: str = "pve"
    efi_disk_size: str = "4M"

    @property
    def ova_path(self) -> Path:
        return self.migration_dir / f"{self.vm_name}.ova"

    @property
    def raw_path(self) -> Path:
        return self.migration_dir / f"{self.vm_name}.raw"

    def redacted(self) -> Dict[str, Any]:
        d = asdict(self)
        d["migration_dir"] = str(self.migration_dir)
        d["esxi_password"] = "***" if self.esxi_password else ""
        return d


class Prompter:
    """
    Resolves one named value: environment first, then config files, then an
    interactive prompt. Invalid or missing answers are asked again until the
    operator gets it right (or stdin closes).
    """

    def __init__(
        self,
        logger: logging.Logger,
        conf: Optional[Mapping[str, Any]] = None,
        *,
        env: Optional[Mapping[str, str]] = None,
        input_fn: Callable[[str], str] = input,
        secret_fn: Callable[[str], str] = getpass.getpass,
    ):
        self.logger = logger
        self.conf = dict(conf or {})
        self.env = os.environ if env is None else env
        self.input_fn = input_fn
        self.secret_fn = secret_fn
        self._discarded: Set[str] = set()

    def preset(self, name: str) -> Optional[str]:
        """Value supplied without asking, or None."""
        if name in self._discarded:
            return None
        v = self.env.get(name)
        if v:
            return v
        v = self.conf.get(name.lower())
        if v is None or v == "":
            return None
        return str(v)

    def discard(self, name: str) -> None:
        """Forget the preset for `name` so the next ask() prompts."""
        self._discarded.add(name)

    def _read(self, name: str, prompt: str, default: Optional[str], secret: bool) -> str:
        text = f"({name}) {prompt} [{default or 'required'}]: "
        try:
            answer = self.secret_fn(text) if secret else self.input_fn(text)
        except EOFError:
            U.die(self.logger, f"No input available for '{name}' (stdin closed).", 1)
        return (answer or "").strip()

    def ask(
        self,
        name: str,
        prompt: str,
        default: Optional[str] = None,
        pattern: Optional[str] = None,
        *,
        secret: bool = False,
    ) -> str:
        value = self.preset(name)
        while True:
            if not value:
                value = self._read(name, prompt, default, secret) or default
            if not value:
                self.logger.error(f"Configuration variable '{name}' is required.")
                continue
            if pattern and not re.fullmatch(pattern, value):
                self.logger.error(f"Invalid value for '{name}'. Must match validation regex '{pattern}'.")
                self.discard(name)
                value = None
                continue
            return value

    def setting(self, name: str, default: str) -> str:
        return self.preset(name) or default

    def int_setting(self, name: str, default: int) -> int:
        raw = self.preset(name)
        if raw is None:
            return default
        try:
            n = int(raw)
        except ValueError:
            n = 0
        if n <= 0:
            U.die(self.logger, f"Invalid value for '{name}': {raw!r} (expected a positive integer)", 1)
        return n


def ask_vm_id(logger: logging.Logger, prompter: Prompter, vm_exists: Callable[[str], bool]) -> str:
    while True:
        vm_id = prompter.ask(
            "VM_ID",
            "VM ID you would like to use in Proxmox (must be bigger than 99)",
            None,
            VM_ID_PATTERN,
        )
        if not vm_exists(vm_id):
            return vm_id
        logger.error(f"VM with ID '{vm_id}' already exists. Please enter a different ID.")
        prompter.discard("VM_ID")


def collect_settings(
    logger: logging.Logger,
    prompter: Prompter,
    vm_exists: Callable[[str], bool],
    *,
    workdir: Optional[str] = None,
) -> MigrationSettings:
    esxi_server = prompter.ask("ESXI_SERVER", "ESXi server hostname/IP")
    esxi_username = prompter.ask("ESXI_USERNAME", "ESXi server username")
    esxi_password = prompter.ask("ESXI_PASSWORD", "ESXi server password", secret=True)

    vm_name = prompter.ask("VM_NAME", "Name of the VM to migrate")
    vlan_tag = prompter.ask("VLAN_TAG", "VLAN tag", "80", VLAN_TAG_PATTERN)
    vm_id = ask_vm_id(logger, prompter, vm_exists)
    storage_type = prompter.ask("STORAGE_TYPE", "Storage type (local-lvm or local-zfs)", "local-lvm", STORAGE_PATTERN)

    migration_dir = workdir or prompter.setting("MIGRATION_DIR", DEFAULT_MIGRATION_DIR)

    settings = MigrationSettings(
        esxi_server=esxi_server,
        esxi_username=esxi_username,
        esxi_password=esxi_password,
        vm_name=vm_name,
        vlan_tag=vlan_tag,
        vm_id=vm_id,
        storage_type=storage_type,
        migration_dir=Path(migration_dir).expanduser(),
        esxi_datastore=prompter.setting("ESXI_DATASTORE", "datastore"),
        vm_memory=prompter.int_setting("VM_MEMORY", 2048),
        vm_cores=prompter.int_setting("VM_CORES", 2),
        net_bridge=prompter.setting("NET_BRIDGE", "vmbr0"),
        efi_vg_name=prompter.setting("EFI_VG_NAME", "pve"),
        efi_disk_size=prompter.setting("EFI_DISK_SIZE", "4M"),
    )
    logger.debug(f"Settings: {settings.redacted()}")
    return settings
