import io
import logging
import subprocess
import tarfile
from pathlib import Path

from esxi2pve.config.settings import MigrationSettings

LOGGER = logging.getLogger("esxi2pve.tests")


def make_settings(workdir, **overrides):
    values = dict(
        esxi_server="esxi01.lab",
        esxi_username="root",
        esxi_password="s3cret",
        vm_name="web01",
        vlan_tag="80",
        vm_id="105",
        storage_type="local-lvm",
        migration_dir=Path(workdir),
    )
    values.update(overrides)
    return MigrationSettings(**values)


def completed(argv=None, rc=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(argv or [], rc, stdout, stderr)


def write_ova(path, members):
    """members: {name: bytes}"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(path, "w") as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return path
