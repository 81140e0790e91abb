from __future__ import annotations
import glob
import logging
import tarfile
from pathlib import Path
from typing import List, Optional
import xml.etree.ElementTree as ET
from rich.progress import Progress, BarColumn, TextColumn, TimeElapsedColumn, TimeRemainingColumn
from ..core.utils import U

OVF_NS = {"ovf": "http://schemas.dmtf.org/ovf/envelope/1"}


class OVF:
    @staticmethod
    def _inside(outdir: Path, member: tarfile.TarInfo) -> bool:
        target = (outdir / member.name).resolve()
        return target == outdir or outdir in target.parents
    @staticmethod
    def extract_ova(logger: logging.Logger, ova: Path, outdir: Path) -> List[Path]:
        U.banner(logger, "Extract OVA")
        U.ensure_dir(outdir)
        root = outdir.resolve()
        logger.info(f"OVA: {ova}")
        extracted: List[Path] = []
        try:
            with tarfile.open(ova) as tar:
                members = tar.getmembers()
                for member in members:
                    if not OVF._inside(root, member) or member.issym() or member.islnk():
                        U.die(logger, f"Refusing suspicious OVA member: {member.name}", 1)
                with Progress(TextColumn("{task.description}"), BarColumn(), TextColumn("{task.percentage:>3.0f}%"), TimeElapsedColumn(), TimeRemainingColumn()) as progress:
                    task = progress.add_task("Extracting OVA", total=len(members))
                    for member in members:
                        if hasattr(tarfile, "data_filter"):
                            tar.extract(member, root, filter="data")
                        else:
                            tar.extract(member, root)
                        extracted.append(root / member.name)
                        logger.debug(f"x {member.name}")
                        progress.update(task, advance=1)
        except (tarfile.TarError, OSError) as e:
            U.die(logger, f"Failed to extract {ova}: {e}", 1)
        logger.info(f"Extracted {len(extracted)} file(s) into {root}")
        return extracted
    @staticmethod
    def find_descriptor(logger: logging.Logger, outdir: Path) -> Optional[Path]:
        ovfs = sorted(outdir.rglob("*.ovf"))
        if not ovfs:
            logger.warning(f"No OVF descriptor found under {outdir}")
            return None
        logger.info(f"Found OVF file: '{ovfs[0]}'")
        return ovfs[0]
    @staticmethod
    def disks_in_descriptor(logger: logging.Logger, ovf: Path) -> List[str]:
        """
        hrefs of the files referenced by <Disk ovf:fileRef=...> entries.
        """
        try:
            tree = ET.parse(ovf)
        except (ET.ParseError, OSError) as e:
            logger.warning(f"Could not parse {ovf}: {e}")
            return []
        files = {
            f.get(f"{{{OVF_NS['ovf']}}}id"): f.get(f"{{{OVF_NS['ovf']}}}href")
            for f in tree.findall(".//ovf:File", OVF_NS)
        }
        hrefs: List[str] = []
        for disk in tree.findall(".//ovf:Disk", OVF_NS):
            href = files.get(disk.get(f"{{{OVF_NS['ovf']}}}fileRef"))
            if href:
                hrefs.append(href)
        if hrefs:
            logger.info("Disks referenced by OVF:")
            for h in hrefs:
                logger.info(f" - {h}")
        return hrefs
    @staticmethod
    def find_disk(logger: logging.Logger, outdir: Path, vm_name: str) -> Path:
        """
        The single `<vm>-disk*.vmdk` ovftool produced. Multi-disk VMs (or a
        broken export with none) are not handled and stop the run here, before
        anything is created on the Proxmox side.
        """
        logger.info("Searching for .vmdk file...")
        matches = sorted(outdir.rglob(f"{glob.escape(vm_name)}-disk*.vmdk"))
        if len(matches) != 1:
            for m in matches:
                logger.error(f" - {m}")
            U.die(logger, "Multiple or no .vmdk files found.", 1)
        logger.info(f"Found .vmdk file: '{matches[0]}'")
        return matches[0]
