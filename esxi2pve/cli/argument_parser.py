from __future__ import annotations
import argparse

from ..core.logger import c
from ..config.config_loader import Config
from .. import __version__

YAML_EXAMPLE = r"""# esxi2pve config
# Run:
# sudo esxi2pve --config migrate.yaml
#
# Environment variables with the same name (upper case) win over this file;
# anything missing here is asked for interactively.
esxi_server: 192.168.1.20
esxi_username: root
# esxi_password: leave it out and type it at the prompt
vm_name: web01
vlan_tag: 80
vm_id: 105
storage_type: local-lvm # local-lvm | local-zfs
# Optional, shown with their defaults:
# migration_dir: /mnt/vm-migration
# esxi_datastore: datastore
# vm_memory: 2048
# vm_cores: 2
# net_bridge: vmbr0
# efi_vg_name: pve
# efi_disk_size: 4M
"""


class CLI:
    @staticmethod
    def build_parser() -> argparse.ArgumentParser:
        epilog = (
            c("YAML example:\n", "cyan", ["bold"]) +
            c(YAML_EXAMPLE, "cyan") +
            "\n" +
            c("Steps:\n", "cyan", ["bold"]) +
            c(" • Export the VM from ESXi as OVA (ovftool)\n", "cyan") +
            c(" • Convert the disk to raw (qemu-img) and install qemu-guest-agent (virt-customize)\n", "cyan") +
            c(" • Detect BIOS/UEFI from the source .vmx (ssh)\n", "cyan") +
            c(" • Create the Proxmox VM, import and attach the disk (qm)\n", "cyan") +
            c(" • UEFI guests: add an EFI vars disk (lvcreate)\n", "cyan")
        )
        p = argparse.ArgumentParser(
            prog="esxi2pve",
            description=c("esxi2pve: migrate one VMware ESXi VM to Proxmox VE", "green", ["bold"]),
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=epilog,
        )
        p.add_argument("--config", action="append", default=[], help="YAML/JSON config file (repeatable; later overrides earlier).")
        p.add_argument("--dump-config", action="store_true", help="Print the resolved settings (password masked) and exit.")
        p.add_argument("--version", action="version", version=__version__)
        p.add_argument("-v", "--verbose", action="count", default=0, help="Verbosity: -v, -vv")
        p.add_argument("--log-file", default=None, help="Write logs to file.")
        p.add_argument("--workdir", default=None, help="Working directory for the OVA and disk images (default: /mnt/vm-migration).")
        return p


def parse_args_with_config(argv=None, logger=None):
    """Parse flags, set up logging, load+merge --config files.

    Returns: (args, merged_config_dict, logger)
    """
    args = CLI.build_parser().parse_args(argv)

    if logger is None:
        from ..core.logger import Log  # local import to avoid cycles
        logger = Log.setup(args.verbose, args.log_file)

    conf = {}
    if args.config:
        conf = Config.load_many(logger, list(args.config))
    return args, conf, logger
