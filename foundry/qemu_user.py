"""Discovery of the user and group that QEMU processes run as."""

from __future__ import annotations

import functools
import os
from typing import NamedTuple

try:
    import grp
    import pwd
except ImportError:  # pragma: no cover - non-Unix platforms
    grp = None  # type: ignore[assignment]
    pwd = None  # type: ignore[assignment]

QEMU_CONF_PATH = "/etc/libvirt/qemu.conf"
_COMMON_USERS = ("qemu", "libvirt-qemu")
_FALLBACK_ID = "107"


class QemuUserGroup(NamedTuple):
    """Numeric UID and GID (as strings) of the QEMU user.

    ``is_fallback`` is true when no user could be found and the
    Fedora/RHEL default 107 is used instead.
    """

    uid: str
    gid: str
    is_fallback: bool = False


def read_qemu_configured_user(
    path: str | os.PathLike[str] = QEMU_CONF_PATH,
) -> tuple[str, str]:
    """Return the ``(user, group)`` names set in a qemu.conf file.

    Missing settings, or a missing file, give empty strings.
    """
    username = ""
    groupname = ""
    try:
        with open(path, encoding="utf-8", errors="replace") as conf:
            for raw_line in conf:
                line = raw_line.strip()
                if not line or line.startswith("#"):
                    continue
                key, sep, value = line.partition("=")
                if not sep:
                    continue
                value = value.strip().strip("\"'")
                if line.startswith("user"):
                    username = value
                if line.startswith("group"):
                    groupname = value
    except OSError:
        return "", ""
    return username, groupname


def _lookup_user(name: str) -> tuple[str, str] | None:
    if pwd is None:
        return None
    try:
        entry = pwd.getpwnam(name)
    except KeyError:
        return None
    return str(entry.pw_uid), str(entry.pw_gid)


def _lookup_group(name: str) -> str | None:
    if grp is None:
        return None
    try:
        return str(grp.getgrnam(name).gr_gid)
    except KeyError:
        return None


def _resolve_qemu_user_group(config_path: str | os.PathLike[str]) -> QemuUserGroup:
    username, groupname = read_qemu_configured_user(config_path)

    if username:
        found = _lookup_user(username)
        if found is not None:
            uid, user_gid = found
            gid = _lookup_group(groupname) if groupname else None
            return QemuUserGroup(uid, gid if gid is not None else user_gid)

    for name in _COMMON_USERS:
        found = _lookup_user(name)
        if found is not None:
            return QemuUserGroup(*found)

    return QemuUserGroup(_FALLBACK_ID, _FALLBACK_ID, is_fallback=True)


@functools.lru_cache(maxsize=None)
def get_qemu_user_group() -> QemuUserGroup:
    """Return the QEMU process UID and GID; computed once and cached.

    Tries the user configured in qemu.conf, then the common names ``qemu``
    and ``libvirt-qemu``, and finally falls back to 107.
    """
    return _resolve_qemu_user_group(QEMU_CONF_PATH)