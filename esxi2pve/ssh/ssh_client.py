from __future__ import annotations

import logging
import os
import shlex
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..core.utils import U
from .ssh_config import SSHConfig


@dataclass(frozen=True)
class SSHResult:
    rc: int
    stdout: str
    stderr: str


class SSHClient:
    """
    Runs commands on the ESXi shell through the system ssh binary.

    Password auth goes through `sshpass -e`: the password travels in the
    SSHPASS environment variable of the child only, so it never shows up in
    argv, `ps` output or our debug log.
    """

    def __init__(self, logger: logging.Logger, cfg: SSHConfig):
        self.logger = logger
        self.cfg = cfg

    def _remote_sh(self, cmd: str) -> str:
        # ESXi's busybox sh is POSIX enough for -c
        return f"sh -c {shlex.quote(cmd)}"

    def _argv(self, cmd: str) -> List[str]:
        argv = self.cfg.base_cmd() + [self._remote_sh(cmd)]
        if self.cfg.password:
            argv = ["sshpass", "-e"] + argv
        return argv

    def _env(self) -> Optional[Dict[str, str]]:
        if not self.cfg.password:
            return None
        env = dict(os.environ)
        env["SSHPASS"] = self.cfg.password
        return env

    def run(
        self,
        cmd: str,
        *,
        capture: bool = True,
        timeout: Optional[int] = None,
        check: bool = True,
    ) -> SSHResult:
        """
        Run a command on the remote host; returns rc/stdout/stderr.
        With check=True a non-zero exit raises CommandError.
        """
        argv = self._argv(cmd)
        self.logger.debug(f"SSH {self.cfg.describe()}: {cmd}")
        cp = U.run_cmd(self.logger, argv, check=check, capture=capture, env=self._env(), timeout=timeout)
        return SSHResult(
            rc=cp.returncode,
            stdout=(cp.stdout or "") if capture else "",
            stderr=(cp.stderr or "") if capture else "",
        )
