"""The storage manager: pools, volumes and images behind one object.

Two default pools are used: ``foundry-images`` holds base OS images shared
by VMs, and ``foundry-vms`` holds per-VM volumes (boot disks, data disks and
cloud-init ISOs). Typical use::

    mgr = Manager(client)
    mgr.ensure_default_pools()
    mgr.import_image("/path/to/image.qcow2", "fedora-43.qcow2")
    mgr.create_volume("foundry-vms", VolumeSpec(
        name="myvm_boot", type=VolumeType.BOOT, format=VolumeFormat.QCOW2,
        capacity_gb=20, backing_volume=mgr.get_image_path("fedora-43.qcow2"),
    ))
"""

from __future__ import annotations

from foundry.image import ImageManager
from foundry.pool import PoolManager
from foundry.types import (
    DEFAULT_IMAGES_PATH,
    DEFAULT_IMAGES_POOL,
    DEFAULT_VMS_PATH,
    DEFAULT_VMS_POOL,
    PoolType,
    StorageError,
)


class Manager(PoolManager, ImageManager):
    """Coordinates storage pool, volume and image operations."""

    def ensure_default_pools(self) -> None:
        """Create the default images and VMs pools if they do not exist."""
        try:
            self.ensure_pool(DEFAULT_IMAGES_POOL, PoolType.DIR, DEFAULT_IMAGES_PATH)
        except StorageError as exc:
            raise StorageError(f"failed to ensure images pool: {exc}") from exc

        try:
            self.ensure_pool(DEFAULT_VMS_POOL, PoolType.DIR, DEFAULT_VMS_PATH)
        except StorageError as exc:
            raise StorageError(f"failed to ensure VMs pool: {exc}") from exc