"""Storage pool, volume and base image management for libvirt virtual machines."""

__version__ = "0.1.0"

__all__ = ["client", "format", "image", "manager", "pool", "qemu_user", "types", "volume"]