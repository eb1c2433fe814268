"""Storage pool lifecycle: create, ensure, delete, list, inspect and refresh."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterator
from contextlib import contextmanager

from foundry.client import LibvirtClient, StoragePool, StoragePoolState
from foundry.qemu_user import get_qemu_user_group
from foundry.types import (
    DEFAULT_IMAGES_POOL,
    DEFAULT_VMS_POOL,
    PoolInfo,
    PoolType,
    StorageError,
)


@contextmanager
def _failing_as(message: str) -> Iterator[None]:
    """Turn any client failure into a StorageError prefixed with ``message``."""
    try:
        yield
    except Exception as exc:
        raise StorageError(f"{message}: {exc}") from exc


def generate_dir_pool_xml(name: str, path: str) -> str:
    """Return the XML definition of a directory-backed pool owned by QEMU."""
    ids = get_qemu_user_group()

    pool = ET.Element("pool", {"type": "dir"})
    ET.SubElement(pool, "name").text = name
    target = ET.SubElement(pool, "target")
    ET.SubElement(target, "path").text = path
    permissions = ET.SubElement(target, "permissions")
    ET.SubElement(permissions, "owner").text = ids.uid
    ET.SubElement(permissions, "group").text = ids.gid
    ET.SubElement(permissions, "mode").text = "0755"

    ET.indent(pool, space="  ")
    return ET.tostring(pool, encoding="unicode").strip()


def _state_name(state: int) -> str:
    try:
        return StoragePoolState(state).name.lower()
    except ValueError:
        return "unknown"


class PoolManager:
    """Manages libvirt storage pools through a LibvirtClient."""

    def __init__(self, client: LibvirtClient) -> None:
        self.client = client

    def ensure_pool(self, name: str, pool_type: PoolType | str, path: str) -> None:
        """Create the pool unless one with this name already exists."""
        try:
            self.client.storage_pool_lookup_by_name(name)
        except Exception:
            self.create_pool(name, pool_type, path)

    def create_pool(self, name: str, pool_type: PoolType | str, path: str) -> None:
        """Define, build, start and autostart a new pool."""
        if pool_type != PoolType.DIR:
            raise StorageError(f"unsupported pool type: {pool_type}")

        pool_xml = generate_dir_pool_xml(name, path)

        with _failing_as("failed to define pool"):
            pool = self.client.storage_pool_define_xml(pool_xml, 0)

        try:
            self.client.storage_pool_build(pool, 0)
        except Exception as exc:
            self._undefine_quietly(pool)
            raise StorageError(f"failed to build pool: {exc}") from exc

        try:
            self.client.storage_pool_create(pool, 0)
        except Exception as exc:
            self._undefine_quietly(pool)
            raise StorageError(f"failed to start pool: {exc}") from exc

        with _failing_as("pool created but failed to set autostart"):
            self.client.storage_pool_set_autostart(pool, 1)

    def _undefine_quietly(self, pool: StoragePool) -> None:
        try:
            self.client.storage_pool_undefine(pool)
        except Exception:
            pass

    def delete_pool(self, name: str, force: bool) -> None:
        """Stop and undefine a pool; with ``force``, delete its volumes first.

        The default pools cannot be deleted.
        """
        if name in (DEFAULT_IMAGES_POOL, DEFAULT_VMS_POOL):
            raise StorageError(f"cannot delete default pool: {name}")

        with _failing_as("pool not found"):
            pool = self.client.storage_pool_lookup_by_name(name)

        if force:
            with _failing_as("failed to list volumes"):
                volumes = self.client.storage_pool_list_all_volumes(pool, 1, 0)
            for vol in volumes:
                try:
                    self.client.storage_vol_delete(vol, 0)
                except Exception:
                    continue

        with _failing_as("failed to get pool info"):
            state, _, _, _ = self.client.storage_pool_get_info(pool)

        if state == StoragePoolState.RUNNING:
            with _failing_as("failed to stop pool"):
                self.client.storage_pool_destroy(pool)

        with _failing_as("failed to undefine pool"):
            self.client.storage_pool_undefine(pool)

    def list_pools(self) -> list[PoolInfo]:
        """Return information on every pool, skipping pools that cannot be read."""
        with _failing_as("failed to list pools"):
            pools = self.client.connect_list_all_storage_pools(1, 0)

        infos = []
        for pool in pools:
            try:
                infos.append(self.get_pool_info(pool.name))
            except StorageError:
                continue
        return infos

    def get_pool_info(self, name: str) -> PoolInfo:
        """Return the type, path, UUID, state and sizes of a pool."""
        with _failing_as("pool not found"):
            pool = self.client.storage_pool_lookup_by_name(name)

        with _failing_as("failed to get pool info"):
            state, capacity, allocation, available = self.client.storage_pool_get_info(pool)

        with _failing_as("failed to get pool XML"):
            xml_desc = self.client.storage_pool_get_xml_desc(pool, 0)

        try:
            definition = ET.fromstring(xml_desc)
        except ET.ParseError as exc:
            raise StorageError(f"failed to parse pool XML: {exc}") from exc

        pool_path = ""
        target = definition.find("target")
        if definition.get("type") == "dir" and target is not None:
            pool_path = target.findtext("path", default="")

        return PoolInfo(
            name=pool.name,
            type=PoolType.DIR,
            path=pool_path,
            uuid=pool.uuid_string(),
            state=_state_name(state),
            capacity=capacity,
            allocation=allocation,
            available=available,
        )

    def refresh_pool(self, name: str) -> None:
        """Ask libvirt to rescan the pool."""
        with _failing_as("pool not found"):
            pool = self.client.storage_pool_lookup_by_name(name)
        with _failing_as("failed to refresh pool"):
            self.client.storage_pool_refresh(pool, 0)