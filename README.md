# foundry

Storage management for virtual machines run under libvirt: storage pools,
volumes and base OS images.

foundry works with two default directory pools:

- `foundry-images` at `/var/lib/libvirt/images/foundry/images` holds base OS
  images shared by many VMs.
- `foundry-vms` at `/var/lib/libvirt/images/foundry/vms` holds per-VM volumes:
  boot disks, data disks and cloud-init ISOs.

## Installing

```
pip install .
```

The package has no runtime dependencies. To run the tests:

```
pip install ".[test]"
pytest
```

## The libvirt connection

All operations go through an object that implements the `LibvirtClient`
interface from `foundry.client`. That interface lists only the storage calls
foundry needs, such as `storage_pool_lookup_by_name`,
`storage_vol_create_xml` and `storage_vol_upload`. Pass your connection
object, or an in-memory fake for testing, to `Manager`.

## Usage

```python
from foundry.manager import Manager
from foundry.types import VolumeFormat, VolumeSpec, VolumeType

mgr = Manager(client)

# Create foundry-images and foundry-vms if they are missing.
mgr.ensure_default_pools()

# Import a base image. The name must end in .qcow2 or .raw, and the name
# must match the format found in the file's contents.
mgr.import_image("/path/to/fedora.qcow2", "fedora-43.qcow2")

# Create a boot disk backed by that image.
backing = mgr.get_image_path("fedora-43.qcow2")
mgr.create_volume(
    "foundry-vms",
    VolumeSpec(
        name="myvm_boot",
        type=VolumeType.BOOT,
        format=VolumeFormat.QCOW2,
        capacity_gb=20,
        backing_volume=backing,
    ),
)

for info in mgr.list_pools():
    print(info.name, info.state, f"{info.available_gb():.1f} GB free")
```

`Manager` combines `PoolManager`, `VolumeManager` and `ImageManager`. You can
also use each of those on its own.

If an operation fails, foundry raises `foundry.types.StorageError`.

## Detecting image formats

`foundry.format.detect_image_format(path)` reads the magic bytes of a file:

- If the file starts with `QFI\xfb`, the result is `VolumeFormat.QCOW2`.
- If the bytes at offset 510 are `0x55 0xaa` (the MBR boot signature, which
  GPT disks also carry), the result is `VolumeFormat.RAW`.

Any other file raises `StorageError`.

## QEMU user and group

Volumes and pools are created with the owner and group of the QEMU process.
`foundry.qemu_user.get_qemu_user_group()` looks these up in this order:

1. The `user` and `group` settings in `/etc/libvirt/qemu.conf`.
2. The accounts `qemu` and `libvirt-qemu`.
3. UID/GID 107 as a last resort.

The result is cached after the first call.