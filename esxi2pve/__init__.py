"""esxi2pve: move a single VMware ESXi virtual machine onto a Proxmox VE host."""

__version__ = "1.0.0"
