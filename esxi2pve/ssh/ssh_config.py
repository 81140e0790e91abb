from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class SSHConfig:
    """
    Connection settings for the ESXi shell.

    ESXi hosts are usually reached with the root password, so `password` is
    first-class here: when set, commands go through `sshpass -e` and BatchMode
    is turned off (BatchMode forbids password auth).
    """
    host: str
    user: str = "root"
    password: Optional[str] = field(default=None, repr=False)

    connect_timeout: int = 10
    keepalive_interval: int = 30
    keepalive_count: int = 3

    def __post_init__(self) -> None:
        host = (self.host or "").strip()
        if not host:
            raise ValueError("SSHConfig.host must not be empty")
        object.__setattr__(self, "host", host)

        user = (self.user or "").strip()
        if not user:
            raise ValueError("SSHConfig.user must not be empty")
        object.__setattr__(self, "user", user)

        if self.connect_timeout < 0:
            raise ValueError(f"connect_timeout must be >= 0 (got {self.connect_timeout})")

    @property
    def batch_mode(self) -> bool:
        return not self.password

    def target(self) -> str:
        return f"{self.user}@{self.host}"

    def base_cmd(self) -> List[str]:
        """
        ssh argv up to and including user@host (no remote command yet).
        """
        cmd: List[str] = [
            "ssh",
            "-o", f"ConnectTimeout={self.connect_timeout}",
            "-o", f"ServerAliveInterval={self.keepalive_interval}",
            "-o", f"ServerAliveCountMax={self.keepalive_count}",
        ]

        if self.batch_mode:
            cmd += ["-o", "BatchMode=yes"]

        # ESXi hosts are rarely in known_hosts of a Proxmox node
        cmd += ["-o", "StrictHostKeyChecking=no", "-o", "UserKnownHostsFile=/dev/null"]

        cmd.append(self.target())
        return cmd

    def describe(self) -> str:
        """Safe for logs: never includes the password."""
        auth = "password" if self.password else "agent"
        return f"{self.target()} auth={auth}"
