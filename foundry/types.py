"""Core storage types: pool and volume kinds, volume specs and info records."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

_GIB = 1024 * 1024 * 1024

DEFAULT_IMAGES_POOL = "foundry-images"
"""Pool name for base OS images."""

DEFAULT_VMS_POOL = "foundry-vms"
"""Pool name for VM disks."""

DEFAULT_IMAGES_PATH = "/var/lib/libvirt/images/foundry/images"
"""Default directory for base images."""

DEFAULT_VMS_PATH = "/var/lib/libvirt/images/foundry/vms"
"""Default directory for VM disks."""


class StorageError(Exception):
    """Raised when a storage operation or validation fails."""


class _StrEnum(str, Enum):
    def __str__(self) -> str:
        return str(self.value)


class PoolType(_StrEnum):
    """Storage pool backend type."""

    DIR = "dir"
    LVM = "lvm"
    ZFS = "zfs"
    NFS = "netfs"
    CEPH = "rbd"
    ISCSI = "iscsi"
    GLUSTER = "gluster"


class VolumeType(_StrEnum):
    """Purpose of a storage volume."""

    BOOT = "boot"
    DATA = "data"
    CLOUD_INIT = "cloudinit"
    BASE_IMAGE = "base-image"


class VolumeFormat(_StrEnum):
    """Disk image format."""

    QCOW2 = "qcow2"
    RAW = "raw"


def _text(value: object) -> str:
    """Plain string form of an enum member or string."""
    return str(getattr(value, "value", value))


@dataclass
class VolumeSpec:
    """How to create a storage volume.

    ``backing_volume`` is a filesystem path of a qcow2 backing file, or empty.
    """

    name: str = ""
    type: VolumeType | str = ""
    format: VolumeFormat | str = ""
    capacity_gb: int = 0
    backing_volume: str = ""

    def validate(self) -> None:
        """Raise StorageError if the spec is not valid."""
        if not self.name:
            raise StorageError("volume name is required")
        if not self.type:
            raise StorageError("volume type is required")
        if not self.format:
            raise StorageError("volume format is required")
        if self.format not in (VolumeFormat.QCOW2, VolumeFormat.RAW):
            raise StorageError(
                f"invalid volume format: {_text(self.format)} (must be qcow2 or raw)"
            )
        if self.capacity_gb < 0:
            raise StorageError("volume capacity must not be negative")
        if self.capacity_gb == 0 and self.type != VolumeType.CLOUD_INIT:
            raise StorageError("volume capacity must be greater than 0")
        if self.backing_volume and self.format != VolumeFormat.QCOW2:
            raise StorageError("backing volumes are only supported for qcow2 format")


@dataclass
class PoolInfo:
    """Information about a storage pool; sizes are in bytes."""

    name: str = ""
    type: PoolType = PoolType.DIR
    path: str = ""
    uuid: str = ""
    state: str = ""
    autostart: bool = False
    persistent: bool = False
    capacity: int = 0
    allocation: int = 0
    available: int = 0

    def capacity_gb(self) -> float:
        """Total capacity in GiB."""
        return self.capacity / _GIB

    def allocation_gb(self) -> float:
        """Allocated space in GiB."""
        return self.allocation / _GIB

    def available_gb(self) -> float:
        """Available space in GiB."""
        return self.available / _GIB


@dataclass
class VolumeInfo:
    """Information about a storage volume; sizes are in bytes."""

    name: str = ""
    type: VolumeType | str = ""
    format: VolumeFormat | str = ""
    path: str = ""
    pool: str = ""
    capacity: int = 0
    allocation: int = 0

    def capacity_gb(self) -> float:
        """Capacity in GiB."""
        return self.capacity / _GIB

    def allocation_gb(self) -> float:
        """Allocated space in GiB."""
        return self.allocation / _GIB