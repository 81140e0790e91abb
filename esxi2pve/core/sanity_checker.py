from __future__ import annotations
import logging
import shutil
from pathlib import Path
from typing import List, Sequence

from rich.progress import Progress, BarColumn, TextColumn, TimeElapsedColumn
from .utils import U

# Everything the migration shells out to. lvcreate is only used for UEFI guests,
# but firmware is only known halfway through, so it is required up front.
REQUIRED_TOOLS = ("qm", "ovftool", "qemu-img", "virt-customize", "lvcreate", "ssh", "sshpass")

# Below this much free space in the working directory we warn.
LOW_SPACE_BYTES = 20 * 1024 ** 3


class SanityChecker:
    def __init__(self, logger: logging.Logger, workdir: Path, tools: Sequence[str] = REQUIRED_TOOLS):
        self.logger = logger
        self.workdir = Path(workdir).expanduser()
        self.tools = tuple(tools)
    def missing_tools(self) -> List[str]:
        return [tool for tool in self.tools if U.which(tool) is None]
    def check_tools(self) -> None:
        missing = self.missing_tools()
        if missing:
            self.logger.error("The following commands that are required to run this script are not in PATH:")
            for tool in missing:
                self.logger.error(f"- {tool}")
            U.die(self.logger, "Please install them and try again.", 1)
        self.logger.debug(f"Tools present: {', '.join(self.tools)}")
    def check_workdir(self) -> None:
        try:
            U.ensure_dir(self.workdir)
            probe = self.workdir / ".esxi2pve_write_test"
            probe.touch()
            probe.unlink()
        except OSError as e:
            U.die(self.logger, f"Working directory {self.workdir} is not writable: {e}", 1)
        self.logger.debug(f"Working directory OK: {self.workdir}")
    def check_disk_space(self) -> None:
        try:
            usage = shutil.disk_usage(self.workdir)
        except OSError as e:
            self.logger.warning(f"Disk space check failed: {e}")
            return
        if usage.free < LOW_SPACE_BYTES:
            self.logger.warning(
                f"Only {U.human_bytes(usage.free)} free in {self.workdir}; "
                "the OVA and the raw image both land here"
            )
        else:
            self.logger.info(f"Disk space OK: {U.human_bytes(usage.free)} free in {self.workdir}")
    def check_all(self) -> None:
        checks = [self.check_tools, self.check_workdir, self.check_disk_space]
        with Progress(TextColumn("{task.description}"), BarColumn(), TextColumn("{task.percentage:>3.0f}%"), TimeElapsedColumn()) as progress:
            task = progress.add_task("Running sanity checks", total=len(checks))
            for check in checks:
                check()
                progress.update(task, advance=1)
        self.logger.info("All sanity checks passed.")
