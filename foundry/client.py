"""The libvirt storage operations the storage managers rely on."""

from __future__ import annotations

import uuid as _uuid
from dataclasses import dataclass
from enum import IntEnum
from typing import BinaryIO, Protocol

_UUID_LEN = 16


class StoragePoolState(IntEnum):
    """Run state of a libvirt storage pool, as reported by the pool info call."""

    INACTIVE = 0
    BUILDING = 1
    RUNNING = 2
    DEGRADED = 3
    INACCESSIBLE = 4


@dataclass(frozen=True)
class StoragePool:
    """Handle to a libvirt storage pool.

    ``uuid`` is always 16 raw bytes: shorter values are zero padded and
    longer ones truncated.
    """

    name: str
    uuid: bytes = bytes(_UUID_LEN)

    def __post_init__(self) -> None:
        raw = bytes(self.uuid)[:_UUID_LEN].ljust(_UUID_LEN, b"\0")
        object.__setattr__(self, "uuid", raw)

    def uuid_string(self) -> str:
        """The UUID in the usual 8-4-4-4-12 lower-case hex form."""
        return str(_uuid.UUID(bytes=self.uuid))


@dataclass(frozen=True)
class StorageVol:
    """Handle to a volume inside a storage pool."""

    pool: str
    name: str
    key: str = ""


class LibvirtClient(Protocol):
    """Storage operations of a libvirt connection.

    Implementations signal failure by raising an exception; the managers
    wrap it in a StorageError with context.
    """

    def storage_pool_lookup_by_name(self, name: str) -> StoragePool:
        """Return the pool with this name."""
        ...

    def storage_pool_define_xml(self, xml: str, flags: int) -> StoragePool:
        """Define a persistent pool from its XML description."""
        ...

    def storage_pool_create(self, pool: StoragePool, flags: int) -> None:
        """Start a defined pool."""
        ...

    def storage_pool_build(self, pool: StoragePool, flags: int) -> None:
        """Build the pool's underlying storage, such as its directory."""
        ...

    def storage_pool_set_autostart(self, pool: StoragePool, autostart: int) -> None:
        """Set whether the pool starts when the host boots."""
        ...

    def storage_pool_destroy(self, pool: StoragePool) -> None:
        """Stop a running pool."""
        ...

    def storage_pool_undefine(self, pool: StoragePool) -> None:
        """Remove the pool's definition."""
        ...

    def storage_pool_get_info(self, pool: StoragePool) -> tuple[int, int, int, int]:
        """Return ``(state, capacity, allocation, available)``; sizes in bytes."""
        ...

    def storage_pool_get_xml_desc(self, pool: StoragePool, flags: int) -> str:
        """Return the pool's XML description."""
        ...

    def storage_pool_list_all_volumes(
        self, pool: StoragePool, need_results: int, flags: int
    ) -> list[StorageVol]:
        """Return every volume in the pool."""
        ...

    def storage_pool_refresh(self, pool: StoragePool, flags: int) -> None:
        """Rescan the pool's contents."""
        ...

    def storage_vol_lookup_by_name(self, pool: StoragePool, name: str) -> StorageVol:
        """Return the volume with this name in the pool."""
        ...

    def storage_vol_create_xml(self, pool: StoragePool, xml: str, flags: int) -> StorageVol:
        """Create a volume from its XML description."""
        ...

    def storage_vol_delete(self, vol: StorageVol, flags: int) -> None:
        """Delete a volume."""
        ...

    def storage_vol_get_path(self, vol: StorageVol) -> str:
        """Return the volume's filesystem path."""
        ...

    def storage_vol_get_info(self, vol: StorageVol) -> tuple[int, int, int]:
        """Return ``(type, capacity, allocation)``; sizes in bytes."""
        ...

    def storage_vol_upload(
        self, vol: StorageVol, stream: BinaryIO, offset: int, length: int, flags: int
    ) -> None:
        """Write ``length`` bytes read from ``stream`` into the volume at ``offset``."""
        ...

    def connect_list_all_storage_pools(self, need_results: int, flags: int) -> list[StoragePool]:
        """Return every storage pool on the connection."""
        ...