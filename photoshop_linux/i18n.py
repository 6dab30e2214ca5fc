"""
Photoshop Linux - English and German user interface texts.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

from __future__ import annotations

import os
from typing import Optional

SUPPORTED_LANGUAGES = ("en", "de")

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "menu_prompt": "What would you like to do?",
        "menu_install": "Install Photoshop CC",
        "menu_precheck": "Run pre-installation check",
        "menu_winecfg": "Configure Wine (winecfg)",
        "menu_uninstall": "Uninstall Photoshop CC",
        "menu_checkpoints": "List installation checkpoints",
        "menu_language": "Deutsch / German",
        "menu_exit": "Exit",
        "goodbye": "Good Bye!",
        "not_64bit": "You are not on a 64-bit system. Continue anyway?",
        "missing_packages": "Missing packages: {packages}. Continue anyway?",
        "select_wine": "Which Wine version should build the Photoshop prefix?",
        "install_path_prompt": "Installation directory:",
        "installing": "Installing Photoshop CC into {path}",
        "install_complete": "Photoshop CC installation complete!",
        "install_failed": "Installation failed: {error}",
        "offer_rollback": "Roll back to checkpoint '{name}'?",
        "rollback_done": "Rolled back to checkpoint '{name}'",
        "no_checkpoints": "No checkpoints found.",
        "uninstall_confirm": "Do you really want to uninstall Photoshop CC?",
        "uninstall_complete": "Photoshop CC has been removed.",
        "remove_wine": "Also remove Wine from the system?",
        "remove_proton": "Also remove Proton GE ({path})?",
        "not_installed": "Photoshop does not seem to be installed.",
        "starting_photoshop": "Starting Photoshop CC...",
        "exe_not_found": "Photoshop.exe not found. Searched:",
        "winecfg_hint": "Recommended settings: Windows 10, no virtual desktop, DPI 96.",
        "kill_done": "All Photoshop processes were terminated.",
        "kill_survivors": "Some Photoshop processes are still running.",
        "precheck_title": "Pre-installation check",
        "installer_missing": "Photoshop installer not found: {path}",
    },
    "de": {
        "menu_prompt": "Was möchtest du tun?",
        "menu_install": "Photoshop CC installieren",
        "menu_precheck": "Vorab-Prüfung ausführen",
        "menu_winecfg": "Wine konfigurieren (winecfg)",
        "menu_uninstall": "Photoshop CC deinstallieren",
        "menu_checkpoints": "Installations-Checkpoints anzeigen",
        "menu_language": "English / Englisch",
        "menu_exit": "Beenden",
        "goodbye": "Auf Wiedersehen!",
        "not_64bit": "Du verwendest kein 64-Bit-System. Trotzdem fortfahren?",
        "missing_packages": "Fehlende Pakete: {packages}. Trotzdem fortfahren?",
        "select_wine": "Welche Wine-Version soll das Photoshop-Prefix erstellen?",
        "install_path_prompt": "Installationsverzeichnis:",
        "installing": "Installiere Photoshop CC nach {path}",
        "install_complete": "Photoshop CC Installation abgeschlossen!",
        "install_failed": "Installation fehlgeschlagen: {error}",
        "offer_rollback": "Zum Checkpoint '{name}' zurückkehren?",
        "rollback_done": "Zum Checkpoint '{name}' zurückgekehrt",
        "no_checkpoints": "Keine Checkpoints gefunden.",
        "uninstall_confirm": "Möchtest du Photoshop CC wirklich deinstallieren?",
        "uninstall_complete": "Photoshop CC wurde entfernt.",
        "remove_wine": "Wine ebenfalls vom System entfernen?",
        "remove_proton": "Proton GE ebenfalls entfernen ({path})?",
        "not_installed": "Photoshop scheint nicht installiert zu sein.",
        "starting_photoshop": "Starte Photoshop CC...",
        "exe_not_found": "Photoshop.exe nicht gefunden. Durchsucht:",
        "winecfg_hint": "Empfohlen: Windows 10, kein virtueller Desktop, DPI 96.",
        "kill_done": "Alle Photoshop-Prozesse wurden beendet.",
        "kill_survivors": "Einige Photoshop-Prozesse laufen noch.",
        "precheck_title": "Vorab-Prüfung",
        "installer_missing": "Photoshop-Installer nicht gefunden: {path}",
    },
}

_language: Optional[str] = None


def detect_language(env: Optional[dict] = None) -> str:
    """LANG_CODE wins; otherwise a LANG starting with "de" selects German."""
    env = env if env is not None else os.environ
    code = env.get("LANG_CODE", "").strip().lower()
    if code in SUPPORTED_LANGUAGES:
        return code
    return "de" if env.get("LANG", "").lower().startswith("de") else "en"


def get_language() -> str:
    global _language
    if _language is None:
        _language = detect_language()
    return _language


def set_language(code: str) -> str:
    global _language
    _language = code if code in SUPPORTED_LANGUAGES else "en"
    os.environ["LANG_CODE"] = _language
    return _language


def toggle_language() -> str:
    return set_language("en" if get_language() == "de" else "de")


def is_german() -> bool:
    return get_language() == "de"


def t(key: str, default: Optional[str] = None, **kwargs) -> str:
    """Translated text for ``key``, falling back to English, then ``default``, then the key."""
    text = MESSAGES[get_language()].get(key) or MESSAGES["en"].get(key) or default or key
    return text.format(**kwargs) if kwargs else text
