from __future__ import annotations
import logging
from pathlib import Path

from ..core.exceptions import CommandError
from ..core.utils import U

GUEST_AGENT_PACKAGE = "qemu-guest-agent"


class GuestAgent:
    @staticmethod
    def install(logger: logging.Logger, image: Path, package: str = GUEST_AGENT_PACKAGE) -> None:
        """
        Install the guest agent inside the (offline) raw image with
        virt-customize, using the guest's own package manager.
        """
        U.banner(logger, f"Install {package}")
        logger.info(f"Installing {package} using virt-customize...")
        try:
            U.run_cmd(logger, ["virt-customize", "-a", str(image), "--install", package], check=True, capture=False)
        except CommandError:
            U.die(logger, f"Failed to install {package}.", 1)
        logger.info(f"Installed {package} using virt-customize!")
