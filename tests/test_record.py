"""Tests for the persisted installation record."""

from pathlib import Path

import pytest

from photoshop_linux.config import InstallContext
from photoshop_linux.errors import InstallationRecordError
from photoshop_linux.record import InstallationRecord


class TestRecordRoundTrip:
    """Test saving and loading the record."""

    def test_with_variant(self, config, installed):
        record = InstallationRecord(installed.install_path, installed.cache_path, "proton-ge:/opt/proton")
        record.save(config.datafile)
        loaded = InstallationRecord.load(config.datafile)
        assert loaded == record

    def test_without_variant(self, config, installed):
        record = InstallationRecord(installed.install_path, installed.cache_path)
        record.save(config.datafile)
        assert config.datafile.read_text().count("\n") == 2
        loaded = InstallationRecord.load(config.datafile)
        assert loaded.wine_variant == ""
        assert loaded.install_path == installed.install_path

    def test_context_round_trip(self, config, installed):
        context = InstallContext(installed.install_path, installed.cache_path, "wine-standard")
        InstallationRecord.from_context(context).save(config.datafile)
        assert InstallationRecord.load(config.datafile).to_context() == context


class TestRecordValidation:
    """Test the checks applied on save and load."""

    def test_save_rejects_system_path(self, config, fake_home):
        record = InstallationRecord(Path("/etc/photoshop"), fake_home / "cache")
        with pytest.raises(InstallationRecordError):
            record.save(config.datafile)
        assert not config.datafile.exists()

    def test_save_rejects_missing_path(self, config, fake_home):
        with pytest.raises(InstallationRecordError):
            InstallationRecord(None, fake_home / "cache").save(config.datafile)

    def test_save_rejects_unsafe_home(self, config, fake_home, monkeypatch):
        monkeypatch.setenv("HOME", "/")
        record = InstallationRecord(fake_home / "ps", fake_home / "cache")
        with pytest.raises(InstallationRecordError):
            record.save(config.datafile)

    def test_strict_missing_file(self, config):
        with pytest.raises(InstallationRecordError):
            InstallationRecord.load(config.datafile)

    def test_lenient_missing_file(self, config):
        assert InstallationRecord.load(config.datafile, strict=False).is_empty

    def test_strict_requires_directories(self, config, fake_home):
        config.datafile.write_text(f"{fake_home / 'gone'}\n{fake_home / 'cache'}\n")
        with pytest.raises(InstallationRecordError):
            InstallationRecord.load(config.datafile)

    def test_lenient_drops_system_path(self, config, fake_home):
        config.datafile.write_text(f"/etc\n{fake_home / 'cache'}\n")
        record = InstallationRecord.load(config.datafile, strict=False)
        assert record.install_path is None
        assert record.cache_path == fake_home / "cache"

    def test_variant_is_sanitised(self, config, installed):
        config.datafile.write_text(f"{installed.install_path}\n{installed.cache_path}\nwine;rm\n")
        assert InstallationRecord.load(config.datafile).wine_variant == "winerm"

    def test_delete(self, config, installed):
        assert InstallationRecord.delete(config.datafile) is True
        assert InstallationRecord.delete(config.datafile) is False
