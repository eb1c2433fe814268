from types import SimpleNamespace
from unittest import mock

import pytest

from foundry import qemu_user
from foundry.qemu_user import (
    QemuUserGroup,
    get_qemu_user_group,
    read_qemu_configured_user,
)


@pytest.mark.parametrize(
    "content, want_user, want_group",
    [
        ('# QEMU configuration\nuser = "qemu"\ngroup = "qemu"\n', "qemu", "qemu"),
        ("user = 'libvirt-qemu'\ngroup = 'libvirt-qemu'\n", "libvirt-qemu", "libvirt-qemu"),
        (
            '# User configuration\n# user = "root"\nuser = "qemu"\n\n'
            '# Group configuration\ngroup = "qemu"\n',
            "qemu",
            "qemu",
        ),
        ("user = qemu\ngroup = qemu\n", "qemu", "qemu"),
        ("", "", ""),
        ('user = "qemu"\n', "qemu", ""),
    ],
    ids=["double-quotes", "single-quotes", "comments", "no-quotes", "empty", "only-user"],
)
def test_read_qemu_configured_user(tmp_path, content, want_user, want_group):
    conf = tmp_path / "qemu.conf"
    conf.write_text(content)
    assert read_qemu_configured_user(conf) == (want_user, want_group)


def test_read_missing_config(tmp_path):
    assert read_qemu_configured_user(tmp_path / "missing.conf") == ("", "")


def test_get_qemu_user_group_gives_numeric_ids():
    result = get_qemu_user_group()
    assert result.uid.isdigit()
    assert result.gid.isdigit()


def test_get_qemu_user_group_is_cached():
    first = get_qemu_user_group()
    second = get_qemu_user_group()
    assert first == second
    assert first is second


def _fake_users(users):
    def getpwnam(name):
        if name not in users:
            raise KeyError(name)
        uid, gid = users[name]
        return SimpleNamespace(pw_uid=uid, pw_gid=gid)

    return getpwnam


def _fake_groups(groups):
    def getgrnam(name):
        if name not in groups:
            raise KeyError(name)
        return SimpleNamespace(gr_gid=groups[name])

    return getgrnam


def test_resolve_uses_configured_user_and_group(tmp_path):
    conf = tmp_path / "qemu.conf"
    conf.write_text('user = "svc"\ngroup = "kvm"\n')
    with mock.patch.object(qemu_user.pwd, "getpwnam", _fake_users({"svc": (500, 501)})), \
            mock.patch.object(qemu_user.grp, "getgrnam", _fake_groups({"kvm": 36})):
        result = qemu_user._resolve_qemu_user_group(conf)
    assert result == QemuUserGroup("500", "36", False)


def test_resolve_unknown_group_uses_primary_gid(tmp_path):
    conf = tmp_path / "qemu.conf"
    conf.write_text('user = "svc"\ngroup = "nogroup-here"\n')
    with mock.patch.object(qemu_user.pwd, "getpwnam", _fake_users({"svc": (500, 501)})), \
            mock.patch.object(qemu_user.grp, "getgrnam", _fake_groups({})):
        result = qemu_user._resolve_qemu_user_group(conf)
    assert result == QemuUserGroup("500", "501", False)


def test_resolve_falls_back_to_common_user(tmp_path):
    users = {"libvirt-qemu": (64055, 108)}
    with mock.patch.object(qemu_user.pwd, "getpwnam", _fake_users(users)):
        result = qemu_user._resolve_qemu_user_group(tmp_path / "missing.conf")
    assert result == QemuUserGroup("64055", "108", False)


def test_resolve_falls_back_to_107(tmp_path):
    with mock.patch.object(qemu_user.pwd, "getpwnam", _fake_users({})):
        result = qemu_user._resolve_qemu_user_group(tmp_path / "missing.conf")
    assert result == QemuUserGroup("107", "107", True)