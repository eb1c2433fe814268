"""Volume operations within a storage pool: create, delete, list, write."""

from __future__ import annotations

import io
import xml.etree.ElementTree as ET

from foundry.client import LibvirtClient, StoragePool, StorageVol
from foundry.qemu_user import get_qemu_user_group
from foundry.types import StorageError, VolumeInfo, VolumeSpec

_GIB = 1024 * 1024 * 1024
_RAW_BACKING_EXTENSIONS = (".raw", ".img")


def _extension(path: str) -> str:
    """Suffix of the last path element from its last dot, or empty."""
    base = path.rsplit("/", 1)[-1]
    dot = base.rfind(".")
    return base[dot:] if dot >= 0 else ""


def generate_volume_xml(spec: VolumeSpec) -> str:
    """Return the XML description of a file volume owned by the QEMU user.

    A backing volume is a filesystem path; its format is taken from the
    extension: ``.raw`` and ``.img`` mean raw, anything else qcow2.
    """
    ids = get_qemu_user_group()

    volume = ET.Element("volume", {"type": "file"})
    ET.SubElement(volume, "name").text = spec.name
    ET.SubElement(volume, "capacity", {"unit": "B"}).text = str(spec.capacity_gb * _GIB)

    target = ET.SubElement(volume, "target")
    ET.SubElement(target, "format", {"type": str(spec.format)})
    permissions = ET.SubElement(target, "permissions")
    ET.SubElement(permissions, "owner").text = ids.uid
    ET.SubElement(permissions, "group").text = ids.gid
    ET.SubElement(permissions, "mode").text = "0644"

    if spec.backing_volume:
        backing_format = (
            "raw" if _extension(spec.backing_volume) in _RAW_BACKING_EXTENSIONS else "qcow2"
        )
        backing = ET.SubElement(volume, "backingStore")
        ET.SubElement(backing, "path").text = spec.backing_volume
        ET.SubElement(backing, "format", {"type": backing_format})

    ET.indent(volume, space="  ")
    return ET.tostring(volume, encoding="unicode").strip()


class VolumeManager:
    """Manages volumes in libvirt storage pools through a LibvirtClient."""

    def __init__(self, client: LibvirtClient) -> None:
        self.client = client

    def _lookup_pool(self, pool_name: str) -> StoragePool:
        try:
            return self.client.storage_pool_lookup_by_name(pool_name)
        except Exception as exc:
            raise StorageError(f"pool not found: {exc}") from exc

    def _lookup_volume(self, pool_name: str, volume_name: str) -> StorageVol:
        pool = self._lookup_pool(pool_name)
        try:
            return self.client.storage_vol_lookup_by_name(pool, volume_name)
        except Exception as exc:
            raise StorageError(f"volume not found: {exc}") from exc

    def create_volume(self, pool_name: str, spec: VolumeSpec) -> None:
        """Validate ``spec`` and create the volume in the named pool."""
        try:
            spec.validate()
        except StorageError as exc:
            raise StorageError(f"invalid volume spec: {exc}") from exc

        pool = self._lookup_pool(pool_name)
        volume_xml = generate_volume_xml(spec)
        try:
            self.client.storage_vol_create_xml(pool, volume_xml, 0)
        except Exception as exc:
            raise StorageError(f"failed to create volume: {exc}") from exc

    def delete_volume(self, pool_name: str, volume_name: str) -> None:
        """Delete a volume from the named pool."""
        vol = self._lookup_volume(pool_name, volume_name)
        try:
            self.client.storage_vol_delete(vol, 0)
        except Exception as exc:
            raise StorageError(f"failed to delete volume: {exc}") from exc

    def list_volumes(self, pool_name: str) -> list[VolumeInfo]:
        """Return every readable volume in the pool; unreadable ones are skipped."""
        pool = self._lookup_pool(pool_name)
        try:
            volumes = self.client.storage_pool_list_all_volumes(pool, 1, 0)
        except Exception as exc:
            raise StorageError(f"failed to list volumes: {exc}") from exc

        infos = []
        for vol in volumes:
            try:
                path = self.client.storage_vol_get_path(vol)
                _, capacity, allocation = self.client.storage_vol_get_info(vol)
            except Exception:
                continue
            infos.append(
                VolumeInfo(
                    name=vol.name,
                    path=path,
                    pool=pool_name,
                    capacity=capacity,
                    allocation=allocation,
                )
            )
        return infos

    def get_volume_path(self, pool_name: str, volume_name: str) -> str:
        """Return the filesystem path of a volume."""
        vol = self._lookup_volume(pool_name, volume_name)
        try:
            return self.client.storage_vol_get_path(vol)
        except Exception as exc:
            raise StorageError(f"failed to get volume path: {exc}") from exc

    def write_volume_data(self, pool_name: str, volume_name: str, data: bytes) -> None:
        """Upload ``data`` to the start of a volume."""
        vol = self._lookup_volume(pool_name, volume_name)
        try:
            self.client.storage_vol_upload(vol, io.BytesIO(data), 0, len(data), 0)
        except Exception as exc:
            raise StorageError(f"failed to upload data to volume: {exc}") from exc

    def volume_exists(self, pool_name: str, volume_name: str) -> bool:
        """Whether the pool holds the volume; a missing pool is an error."""
        pool = self._lookup_pool(pool_name)
        try:
            self.client.storage_vol_lookup_by_name(pool, volume_name)
        except Exception:
            return False
        return True