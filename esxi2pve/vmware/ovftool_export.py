from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List
from urllib.parse import quote

from ..config.settings import MigrationSettings, YES_NO_PATTERN
from ..core.exceptions import CommandError
from ..core.utils import U

# (name, prompt, default, pattern) -> answer; normally Prompter.ask
Confirm = Callable[[str, str, str, str], str]


def vi_locator(settings: MigrationSettings) -> str:
    user = quote(settings.esxi_username, safe="")
    name = quote(settings.vm_name, safe="")
    return f"vi://{user}@{settings.esxi_server}/{name}"


def ovftool_argv(settings: MigrationSettings, ova: Path) -> List[str]:
    return [
        "ovftool",
        "--sourceType=VI",
        "--acceptAllEulas",
        "--noSSLVerify",
        "--skipManifestCheck",
        "--diskMode=thin",
        f"--name={settings.vm_name}",
        vi_locator(settings),
        str(ova),
    ]


class OvaExporter:
    """
    Pulls the source VM off ESXi as a single OVA with ovftool.
    ovftool reads the password from stdin when the locator has none.
    """

    def __init__(self, logger: logging.Logger, settings: MigrationSettings, confirm: Confirm):
        self.logger = logger
        self.settings = settings
        self.confirm = confirm

    @property
    def ova_path(self) -> Path:
        return self.settings.ova_path

    def confirm_overwrite(self) -> None:
        ova = self.ova_path
        if not ova.exists():
            return
        choice = self.confirm(
            "OVERWRITE_OVA",
            f"File '{ova}' already exists. Overwrite? (y/n)",
            "y",
            YES_NO_PATTERN,
        )
        if choice == "n":
            U.die(self.logger, "Export cancelled.", 1)
        ova.unlink()
        self.logger.debug(f"Removed stale {ova}")

    def export(self) -> Path:
        self.confirm_overwrite()
        ova = self.ova_path
        U.ensure_dir(ova.parent)

        U.banner(self.logger, "Export VM from VMware")
        self.logger.info(f"Exporting {self.settings.vm_name} from {self.settings.esxi_server} to {ova}...")
        try:
            U.run_cmd(
                self.logger,
                ovftool_argv(self.settings, ova),
                check=True,
                capture=False,
                input_text=self.settings.esxi_password + "\n",
            )
        except CommandError as e:
            U.die(self.logger, f"ovftool export failed: {e}", 1)
        if not ova.is_file():
            U.die(self.logger, f"ovftool finished but {ova} was not created.", 1)
        self.logger.info(f"Exported {ova} ({U.human_bytes(ova.stat().st_size)})")
        return ova
