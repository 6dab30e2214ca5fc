"""Tests for path validation, input sanitising and guarded removal."""

import os

import pytest

from photoshop_linux.errors import UnsafePathError
from photoshop_linux.security import (
    PathGuard,
    check_file_permissions,
    is_safe_home,
    recreate_directory,
    safe_remove,
    sanitize_input,
    validate_path,
    validate_url,
)


class TestValidatePath:
    """Test the system directory deny-list."""

    @pytest.mark.parametrize("path", ["", "/etc", "/etc/passwd", "/usr/bin/wine", "/proc/1",
                                      "/home/user/../etc", "/root/.wine"])
    def test_rejects_unsafe_paths(self, path):
        """Empty, traversing and system paths are refused."""
        assert validate_path(path) is False

    def test_accepts_home_subdirectory(self, fake_home):
        """A directory below the home directory is fine."""
        assert validate_path(fake_home / "x") is True

    def test_permitted_roots_inside(self, tmp_path):
        """Paths inside a permitted root are accepted."""
        assert validate_path(tmp_path / "a" / "b", permitted_roots=[tmp_path]) is True

    def test_permitted_roots_outside(self, tmp_path):
        """Paths outside every permitted root are refused."""
        root = tmp_path / "root"
        root.mkdir()
        assert validate_path(tmp_path / "elsewhere", permitted_roots=[root]) is False

    def test_symlink_escaping_root(self, tmp_path):
        """A symlink inside the root that points outside is refused."""
        root = tmp_path / "root"
        outside = tmp_path / "outside"
        root.mkdir()
        outside.mkdir()
        (root / "link").symlink_to(outside)
        assert validate_path(root / "link", permitted_roots=[root]) is False


class TestInputHelpers:
    """Test sanitising, URL checks and home checks."""

    def test_sanitize_removes_separator(self):
        assert sanitize_input("a;b") == "ab"

    def test_sanitize_removes_substitution(self):
        assert sanitize_input("rm `id` $(whoami) | cat > x & y") == "rm id whoami)  cat  x  y"

    def test_sanitize_keeps_plain_text(self):
        assert sanitize_input("/home/user/Photoshop CC") == "/home/user/Photoshop CC"

    @pytest.mark.parametrize("url", [
        "https://github.com/benjarogit/photoshopCClinux",
        "https://www.github.com/x",
        "https://raw.githubusercontent.com/x/y",
    ])
    def test_allowed_urls(self, url):
        assert validate_url(url) is True

    @pytest.mark.parametrize("url", [
        "http://github.com/x",
        "https://evil.example.com/x",
        "https://github.com.evil.com/x",
        "ftp://github.com/x",
        "not a url",
    ])
    def test_rejected_urls(self, url):
        assert validate_url(url) is False

    @pytest.mark.parametrize("home,expected", [("/", False), ("/root", False), ("", False),
                                               ("/home/user", True)])
    def test_is_safe_home(self, home, expected):
        assert is_safe_home(home) is expected

    def test_is_safe_home_reads_environment(self, monkeypatch):
        monkeypatch.setenv("HOME", "/")
        assert is_safe_home() is False

    def test_file_permissions(self, tmp_path):
        path = tmp_path / "file"
        path.write_text("x")
        os.chmod(path, 0o644)
        assert check_file_permissions(path) is True
        os.chmod(path, 0o777)
        assert check_file_permissions(path) is False
        assert check_file_permissions(tmp_path / "missing") is False


class TestPathGuard:
    """Test the allow-list used by destructive operations."""

    def test_allows_path_inside_root(self, fake_home):
        guard = PathGuard([fake_home])
        assert guard.allows(fake_home / "photoshop") is True

    def test_home_itself_is_protected(self, fake_home):
        """The home directory can never be removed, even when it is a root."""
        guard = PathGuard.for_installation(fake_home)
        assert guard.allows(fake_home) is False
        with pytest.raises(UnsafePathError):
            guard.check(fake_home)

    def test_system_root_is_ignored(self, fake_home):
        """System directories never become permitted roots."""
        guard = PathGuard(["/etc", fake_home])
        assert guard.allows("/etc/hosts") is False

    def test_extra_paths_are_permitted(self, fake_home, tmp_path):
        other = tmp_path / "elsewhere"
        guard = PathGuard.for_installation(fake_home, other, None)
        assert guard.allows(other / "prefix") is True


class TestSafeRemove:
    """Test guarded file and directory removal."""

    def test_removes_directory_tree(self, fake_home):
        target = fake_home / "tree"
        (target / "sub").mkdir(parents=True)
        (target / "sub" / "file").write_text("x")
        assert safe_remove(target, PathGuard([fake_home])) is True
        assert not target.exists()

    def test_removes_file(self, fake_home):
        target = fake_home / "file"
        target.write_text("x")
        assert safe_remove(target) is True
        assert not target.exists()

    def test_missing_path_returns_false(self, fake_home):
        assert safe_remove(fake_home / "missing") is False

    @pytest.mark.parametrize("path", ["", "/", "/root", "/etc/hosts"])
    def test_refuses_unsafe_path(self, path):
        with pytest.raises(UnsafePathError):
            safe_remove(path)

    def test_refuses_path_outside_guard(self, fake_home, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        with pytest.raises(UnsafePathError):
            safe_remove(outside, PathGuard([fake_home]))
        assert outside.exists()

    def test_removes_symlink_not_target(self, fake_home):
        target = fake_home / "target"
        target.mkdir()
        link = fake_home / "link"
        link.symlink_to(target)
        assert safe_remove(link) is True
        assert target.is_dir()
        assert not link.is_symlink()

    def test_recreate_directory_empties(self, fake_home):
        target = fake_home / "prefix"
        target.mkdir()
        (target / "old").write_text("x")
        recreate_directory(target, PathGuard([fake_home]))
        assert target.is_dir()
        assert list(target.iterdir()) == []
