from __future__ import annotations
import logging
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

from .exceptions import CommandError, Fatal


class U:
    @staticmethod
    def die(logger: logging.Logger, msg: str, code: int = 1) -> None:
        logger.error(msg)
        raise Fatal(code, msg)
    @staticmethod
    def ensure_dir(p: Path) -> None:
        p.mkdir(parents=True, exist_ok=True)
    @staticmethod
    def which(prog: str) -> Optional[str]:
        return shutil.which(prog)
    @staticmethod
    def human_bytes(n: Optional[int]) -> str:
        if n is None:
            return "unknown"
        x = float(n)
        for unit in ["B", "KiB", "MiB", "GiB", "TiB"]:
            if x < 1024 or unit == "TiB":
                return f"{x:.2f} {unit}"
            x /= 1024
        return f"{n} B"
    @staticmethod
    def banner(logger: logging.Logger, title: str) -> None:
        line = "─" * max(10, len(title) + 2)
        logger.info(line)
        logger.info(f" {title}")
        logger.info(line)
    @staticmethod
    def pretty(cmd: List[str]) -> str:
        return " ".join(shlex.quote(x) for x in cmd)
    @staticmethod
    def run_cmd(
        logger: logging.Logger,
        cmd: List[str],
        *,
        check: bool = True,
        capture: bool = False,
        env: Optional[Dict[str, str]] = None,
        input_text: Optional[str] = None,
        timeout: Optional[int] = None,
    ) -> subprocess.CompletedProcess:
        """
        Run an external tool.

        With check=True a non-zero exit is logged (stdout/stderr when captured)
        and raised as CommandError; callers that want to continue pass check=False
        and inspect returncode themselves. input_text is written to stdin and
        is never logged.
        """
        pretty = U.pretty(cmd)
        logger.debug(f"Running: {pretty}")
        try:
            cp = subprocess.run(
                cmd,
                check=False,
                capture_output=capture,
                text=True,
                env=env,
                input=input_text,
                timeout=timeout,
            )
        except FileNotFoundError as e:
            logger.error(f"Command not found: {cmd[0]}")
            raise CommandError(code=1, msg=f"Command not found: {cmd[0]}", cause=e, context={"argv": pretty})
        except subprocess.TimeoutExpired as e:
            logger.error(f"Command timed out after {timeout}s: {pretty}")
            raise CommandError(code=1, msg=f"Command timed out: {cmd[0]}", cause=e, context={"argv": pretty})
        if check and cp.returncode != 0:
            logger.error(f"Command failed ({cp.returncode}): {pretty}")
            if capture:
                if cp.stdout:
                    logger.error(f"stdout: {cp.stdout.strip()}")
                if cp.stderr:
                    logger.error(f"stderr: {cp.stderr.strip()}")
            raise CommandError(
                code=1,
                msg=f"{cmd[0]} exited with status {cp.returncode}",
                context={"argv": pretty, "returncode": cp.returncode},
            )
        return cp
    @staticmethod
    def clean_dir(logger: logging.Logger, path: Path) -> int:
        """
        Remove everything inside `path` but keep `path` itself.
        Returns the number of top-level entries removed.

        Like `rm -rf`, a failing entry is logged and the rest are still
        removed; anything left over is Fatal once all entries were tried.
        """
        if not path.is_dir():
            logger.debug(f"Nothing to clean, not a directory: {path}")
            return 0
        removed = 0
        left: List[Path] = []
        for entry in sorted(path.iterdir()):
            try:
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
            except OSError as e:
                logger.error(f"Failed to remove {entry}: {e}")
                left.append(entry)
                continue
            removed += 1
        if left:
            U.die(logger, f"Failed to clean up {path}: {len(left)} entries left ({', '.join(p.name for p in left)})", 1)
        return removed
