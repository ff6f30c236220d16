"""Unit tests for expunge.infra.storage.local_device."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from expunge.foundation.domain.ports import DeviceProvider, StorageDevice
from expunge.infra.storage.local_device import LocalDevice, LocalDeviceProvider

if TYPE_CHECKING:
    from pathlib import Path

    from expunge.infra.storage.settings import StorageSettings


@pytest.fixture()
def device(tmp_path: Path) -> LocalDevice:
    root = tmp_path / "app-acme"
    root.mkdir()
    return LocalDevice(root)


@pytest.mark.unit
class TestLocalDevice:
    def test_satisfies_port(self, device: LocalDevice) -> None:
        assert isinstance(device, StorageDevice)

    def test_deletes_file(self, device: LocalDevice) -> None:
        (device.root / "a.bin").write_bytes(b"x")

        assert device.delete("a.bin") is True
        assert not device.exists("a.bin")

    def test_missing_path_returns_false(self, device: LocalDevice) -> None:
        assert device.delete("missing.bin") is False

    def test_directory_needs_recursive_when_not_empty(self, device: LocalDevice) -> None:
        (device.root / "dir").mkdir()
        (device.root / "dir" / "a.bin").write_bytes(b"x")

        with pytest.raises(OSError):
            device.delete("dir")
        assert device.delete("dir", recursive=True) is True
        assert not (device.root / "dir").exists()

    def test_deletes_root_recursively(self, device: LocalDevice) -> None:
        (device.root / "nested").mkdir()
        (device.root / "nested" / "a.bin").write_bytes(b"x")

        assert device.delete(device.root, recursive=True) is True
        assert not device.root.exists()
        assert device.delete(device.root, recursive=True) is False

    def test_absolute_path_inside_root(self, device: LocalDevice) -> None:
        target = device.root / "a.bin"
        target.write_bytes(b"x")

        assert device.delete(target) is True

    @pytest.mark.parametrize("path", ["../outside.bin", "/etc/passwd", "sub/../../outside.bin"])
    def test_paths_outside_root_rejected(
        self, device: LocalDevice, tmp_path: Path, path: str, caplog: pytest.LogCaptureFixture
    ) -> None:
        (tmp_path / "outside.bin").write_bytes(b"x")
        (device.root / "sub").mkdir()

        assert device.delete(path) is False
        assert (tmp_path / "outside.bin").exists()
        assert any(r.getMessage() == "storage_path_rejected" for r in caplog.records)

    def test_symlink_is_unlinked_not_followed(self, device: LocalDevice, tmp_path: Path) -> None:
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "keep.bin").write_bytes(b"x")
        (device.root / "link").symlink_to(outside, target_is_directory=True)

        assert device.delete("link", recursive=True) is True
        assert (outside / "keep.bin").exists()

    def test_path_through_symlinked_directory_rejected(
        self, device: LocalDevice, tmp_path: Path
    ) -> None:
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "keep.bin").write_bytes(b"x")
        (device.root / "link").symlink_to(outside, target_is_directory=True)

        assert device.delete("link/keep.bin") is False
        assert (outside / "keep.bin").exists()


@pytest.mark.unit
class TestLocalDeviceProvider:
    def test_satisfies_port(self, storage_settings: StorageSettings) -> None:
        assert isinstance(LocalDeviceProvider(storage_settings), DeviceProvider)

    def test_per_tenant_roots(self, storage_settings: StorageSettings) -> None:
        devices = LocalDeviceProvider(storage_settings)

        assert devices.uploads("acme").root == storage_settings.uploads_root / "app-acme"
        assert devices.cache("acme").root == storage_settings.cache_root / "app-acme"
        assert devices.functions("acme").root == storage_settings.functions_root / "app-acme"
        assert devices.certificates_root == storage_settings.certificates_root

    def test_rejection_is_logged_as_warning(
        self, storage_settings: StorageSettings, caplog: pytest.LogCaptureFixture
    ) -> None:
        caplog.set_level(logging.INFO)
        device = LocalDeviceProvider(storage_settings).uploads("acme")

        device.delete("../app-globex")

        rejected = next(r for r in caplog.records if r.getMessage() == "storage_path_rejected")
        assert rejected.levelno == logging.WARNING
