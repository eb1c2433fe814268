"""Disk image format detection from magic bytes."""

from __future__ import annotations

import os

from foundry.types import StorageError, VolumeFormat

_QCOW2_MAGIC = b"QFI\xfb"
_MBR_SIGNATURE = b"\x55\xaa"
_MBR_SIGNATURE_OFFSET = 510


def detect_image_format(file_path: str | os.PathLike[str]) -> VolumeFormat:
    """Return the format of a bootable disk image.

    QCOW2 images start with ``QFI\\xfb``; RAW images must carry the boot
    sector signature ``0x55 0xaa`` at offset 510 (true for MBR and GPT disks).
    Raises StorageError for anything else.
    """
    try:
        handle = open(file_path, "rb")
    except OSError as exc:
        raise StorageError(f"failed to open file: {exc}") from exc

    with handle:
        magic = handle.read(4)
        if len(magic) < 4:
            raise StorageError("file too small to be valid image (< 4 bytes)")
        if magic == _QCOW2_MAGIC:
            return VolumeFormat.QCOW2

        try:
            handle.seek(_MBR_SIGNATURE_OFFSET)
        except OSError as exc:
            raise StorageError(f"failed to seek to boot sector signature: {exc}") from exc

        signature = handle.read(2)
        if len(signature) < 2:
            raise StorageError("file too small for boot sector (< 512 bytes)")
        if signature == _MBR_SIGNATURE:
            return VolumeFormat.RAW

    raise StorageError(
        "unsupported or invalid image: not qcow2 and missing boot sector "
        "signature (0x55aa at offset 510)"
    )