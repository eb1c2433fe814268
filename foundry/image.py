"""Base image management in the default images pool."""

from __future__ import annotations

import os
from pathlib import Path

from foundry.format import detect_image_format
from foundry.types import (
    DEFAULT_IMAGES_POOL,
    StorageError,
    VolumeFormat,
    VolumeInfo,
    VolumeSpec,
    VolumeType,
)
from foundry.volume import VolumeManager

_GIB = 1024 * 1024 * 1024
_EXTENSION_FORMATS = {".qcow2": VolumeFormat.QCOW2, ".raw": VolumeFormat.RAW}


def _extension(name: str) -> str:
    base = name.rsplit("/", 1)[-1]
    dot = base.rfind(".")
    return base[dot:] if dot >= 0 else ""


class ImageManager(VolumeManager):
    """Manages base OS images stored as volumes in the images pool."""

    def import_image(self, file_path: str | os.PathLike[str], image_name: str) -> None:
        """Import a local qcow2 or raw image file under ``image_name``.

        The name's extension must match the format found in the file.
        """
        try:
            size = os.stat(file_path).st_size
        except OSError as exc:
            raise StorageError(f"failed to stat image file: {exc}") from exc
        size_gb = size // _GIB + 1

        expected = _EXTENSION_FORMATS.get(_extension(image_name))
        if expected is None:
            raise StorageError(
                f'image name must have .qcow2 or .raw extension (got: "{image_name}")'
            )

        try:
            detected = detect_image_format(file_path)
        except StorageError as exc:
            raise StorageError(f"failed to detect image format: {exc}") from exc

        if detected != expected:
            raise StorageError(
                f'format mismatch: file is "{detected}" but image name '
                f'"{image_name}" expects "{expected}"'
            )

        try:
            data = Path(file_path).read_bytes()
        except OSError as exc:
            raise StorageError(f"failed to read image file: {exc}") from exc

        spec = VolumeSpec(
            name=image_name,
            type=VolumeType.BASE_IMAGE,
            format=detected,
            capacity_gb=size_gb,
        )
        try:
            self.create_volume(DEFAULT_IMAGES_POOL, spec)
        except StorageError as exc:
            raise StorageError(f"failed to create image volume: {exc}") from exc

        try:
            self.write_volume_data(DEFAULT_IMAGES_POOL, image_name, data)
        except StorageError as exc:
            try:
                self.delete_volume(DEFAULT_IMAGES_POOL, image_name)
            except StorageError:
                pass
            raise StorageError(f"failed to upload image data: {exc}") from exc

    def list_images(self) -> list[VolumeInfo]:
        """Return every image in the images pool."""
        return self.list_volumes(DEFAULT_IMAGES_POOL)

    def delete_image(self, image_name: str, force: bool) -> None:
        """Delete an image.

        ``force`` is accepted for callers but the image is deleted either way;
        no check is made for volumes that use it as a backing file.
        """
        del force
        self.delete_volume(DEFAULT_IMAGES_POOL, image_name)

    def get_image_path(self, image_name: str) -> str:
        """Return the filesystem path of an image."""
        return self.get_volume_path(DEFAULT_IMAGES_POOL, image_name)

    def image_exists(self, image_name: str) -> bool:
        """Whether the images pool holds the image."""
        return self.volume_exists(DEFAULT_IMAGES_POOL, image_name)