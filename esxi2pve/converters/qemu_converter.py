from __future__ import annotations
import json
import logging
import re
import subprocess
import threading
import time
from pathlib import Path
from typing import List

from rich.progress import Progress, TextColumn, BarColumn, TimeElapsedColumn, TimeRemainingColumn

from ..core.exceptions import CommandError
from ..core.utils import U

_PROGRESS_RE = re.compile(r"\((\d+(?:\.\d+)?)/100%\)")


def parse_progress(line: str) -> float:
    """Percentage from a `qemu-img convert -p` line, or -1 if the line has none."""
    m = _PROGRESS_RE.search(line)
    return float(m.group(1)) if m else -1.0


class Convert:
    @staticmethod
    def virtual_size(logger: logging.Logger, path: Path) -> int:
        try:
            cp = U.run_cmd(logger, ["qemu-img", "info", "--output=json", str(path)], check=True, capture=True)
            return int(json.loads(cp.stdout).get("virtual-size", 0))
        except CommandError as e:
            logger.warning(f"Failed to get image info: {e}")
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            logger.warning(f"Failed to parse image info JSON: {e}")
        return 0
    @staticmethod
    def argv(src: Path, dst: Path, *, in_format: str = "vmdk", out_format: str = "raw") -> List[str]:
        return ["qemu-img", "convert", "-p", "-f", in_format, "-O", out_format, str(src), str(dst)]
    @staticmethod
    def to_raw(logger: logging.Logger, src: Path, dst: Path) -> Path:
        U.ensure_dir(dst.parent)
        total_size = Convert.virtual_size(logger, src)
        cmd = Convert.argv(src, dst)
        U.banner(logger, "Convert to RAW")
        logger.info(f"Converting .vmdk file to raw format: {src} -> {dst} ({U.human_bytes(total_size or None)})")
        logger.debug(f"Running: {U.pretty(cmd)}")
        start_time = time.time()
        try:
            process = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
        except OSError as e:
            U.die(logger, f"Failed to start qemu-img: {e}", 1)
        assert process.stdout is not None
        assert process.stderr is not None
        stdout_lines: List[str] = []
        stderr_lines: List[str] = []

        # qemu-img -p writes progress to stdout; drain stderr in the background
        def read_stderr():
            for line in process.stderr:
                stderr_lines.append(line.strip())
        stderr_thread = threading.Thread(target=read_stderr, daemon=True)
        stderr_thread.start()
        with Progress(TextColumn("{task.description}"), BarColumn(), TextColumn("{task.percentage:>3.0f}%"), TimeElapsedColumn(), TimeRemainingColumn()) as progress:
            task = progress.add_task("Converting", total=100)
            # progress lines end in \r, not \n
            buf = ""
            while True:
                ch = process.stdout.read(1)
                if not ch:
                    break
                if ch in "\r\n":
                    pct = parse_progress(buf)
                    if pct >= 0:
                        progress.update(task, completed=pct)
                    elif buf.strip():
                        stdout_lines.append(buf.strip())
                    buf = ""
                else:
                    buf += ch
            process.wait()
            stderr_thread.join()
            if process.returncode == 0:
                progress.update(task, completed=100)
        if process.returncode != 0:
            logger.error(f"Conversion failed with exit code {process.returncode}")
            if stderr_lines:
                logger.error("stderr output:\n" + "\n".join(stderr_lines))
            U.die(logger, f"qemu-img convert failed with exit code {process.returncode}", 1)
        duration = time.time() - start_time
        if total_size > 0 and duration > 0:
            logger.info(f"Converted .vmdk file to raw format in {duration:.2f}s ({total_size / duration / 1024 / 1024:.2f} MB/s)")
        else:
            logger.info(f"Converted .vmdk file to raw format in {duration:.2f}s")
        return dst
