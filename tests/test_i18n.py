"""Tests for the English and German texts."""

import pytest

from photoshop_linux import i18n
from photoshop_linux.i18n import MESSAGES, detect_language, set_language, t, toggle_language


class TestLanguageDetection:
    """Test choosing the language from the environment."""

    @pytest.mark.parametrize("env,expected", [
        ({"LANG_CODE": "de"}, "de"),
        ({"LANG_CODE": "EN", "LANG": "de_DE.UTF-8"}, "en"),
        ({"LANG": "de_DE.UTF-8"}, "de"),
        ({"LANG": "fr_FR.UTF-8"}, "en"),
        ({"LANG_CODE": "fr", "LANG": "de_AT"}, "de"),
        ({}, "en"),
    ])
    def test_detect_language(self, env, expected):
        assert detect_language(env) == expected

    def test_lazy_detection(self, monkeypatch):
        monkeypatch.setattr(i18n, "_language", None)
        monkeypatch.setenv("LANG_CODE", "")
        monkeypatch.setenv("LANG", "de_DE.UTF-8")
        assert i18n.get_language() == "de"


class TestTranslation:
    """Test looking up texts."""

    def test_english(self):
        assert t("goodbye") == "Good Bye!"

    def test_german(self):
        set_language("de")
        assert t("menu_exit") == "Beenden"
        assert i18n.is_german() is True

    def test_formatting(self):
        assert t("installing", path="/home/u/ps") == "Installing Photoshop CC into /home/u/ps"

    def test_unknown_key(self):
        assert t("no_such_key") == "no_such_key"
        assert t("no_such_key", default="fallback") == "fallback"

    def test_toggle(self):
        assert toggle_language() == "de"
        assert toggle_language() == "en"

    def test_invalid_language_falls_back(self):
        assert set_language("fr") == "en"

    def test_catalogues_have_same_keys(self):
        assert set(MESSAGES["de"]) == set(MESSAGES["en"])
