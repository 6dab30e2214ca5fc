"""
Photoshop Linux - fixed values shared by the installer, launcher and uninstaller.

Copyright (C) 2024 photoshop-linux contributors

This program is free software; you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation; either version 3 of the License, or (at your option) any later version.
"""

from __future__ import annotations


# =============================================================================
# Exit Codes
# =============================================================================

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_DECLINED = 5
EXIT_INTERRUPTED = 130

# =============================================================================
# Paths and Files
# =============================================================================

DATAFILE_NAME = ".psdata.txt"
DEFAULT_INSTALL_DIRNAME = ".photoshopCCV19"
DEFAULT_CACHE_DIRNAME = ".cache/photoshopCCV19"
STATE_DIRNAME = ".photoshop"
COMMAND_LINK = "/usr/local/bin/photoshop"
RUNTIME_LOG_NAME = "photoshop-runtime.log"
LAUNCHER_SCRIPT_NAME = "launcher.sh"
ICON_NAME = "AdobePhotoshop-icon.png"
DESKTOP_FILE_NAME = "photoshop.desktop"
MIME_FILE_NAME = "photoshop.xml"

SYSTEM_PATH_DENYLIST = (
    "/etc", "/usr/bin", "/usr/sbin", "/bin", "/sbin", "/lib",
    "/var/log", "/root", "/sys", "/proc", "/dev",
)

UNSAFE_HOMES = frozenset(("", "/", "/root"))

# Characters and sequences removed from free-form user input
SHELL_METACHARACTERS = ("\0", "`", "$(", ";", "|", "<", ">", "&", "\n", "\r")

ALLOWED_URL_DOMAINS = (
    "github.com", "githubusercontent.com", "sourceforge.net", "archive.org",
)
ALLOWED_DOWNLOAD_DOMAINS = ALLOWED_URL_DOMAINS + (
    "microsoft.com", "aka.ms", "adobe.com",
)

VC_REDIST_URL = "https://aka.ms/vc14/vc_redist.x64.exe"

UPDATE_REPO = "benjarogit/photoshopCClinux"
UPDATE_CACHE_TTL = 86400

# =============================================================================
# Wine
# =============================================================================

WINE_VARIANT_STANDARD = "wine-standard"
WINE_VARIANT_PROTON = "proton-ge"

PROTON_SEARCH_DIRS = (
    ".local/share/proton-ge/current",
    ".local/share/proton-ge",
    ".proton-ge/current",
    ".proton-ge",
)
PROTON_SYSTEM_DIRS = (
    "/usr/local/share/proton-ge/current",
    "/usr/local/share/proton-ge",
    "/opt/proton-ge/current",
    "/opt/proton-ge",
    "/usr/share/proton-ge",
)
PROTON_FORBIDDEN_SEGMENTS = ("/tmp", "/var/tmp", "/dev/shm", "/proc", "steam")

OTHER_WINE_PREFIXES = (".wine", ".local/share/wineprefixes", ".wineprefixes")

# Libraries Wine must load natively for the Adobe UI and CEP panels
IE_DLL_OVERRIDES = (
    "mshtml", "jscript", "vbscript", "urlmon", "wininet", "shdocvw",
    "ieframe", "actxprxy", "browseui", "dxtrans", "msimtf",
)

LAUNCH_DLL_OVERRIDES = ";".join(
    ["winemenubuilder.exe=d", "d3d11=native,builtin"]
    + [f"{dll}=native,builtin" for dll in IE_DLL_OVERRIDES + ("shlwapi", "shell32")]
)

# (verbs, optional) in installation order
WINETRICKS_STEPS: list[tuple[tuple[str, ...], bool]] = [
    (("win10",), False),
    (("vcrun2010", "vcrun2012", "vcrun2013", "vcrun2015"), False),
    (("atmlib", "corefonts", "fontsmooth=rgb"), False),
    (("msxml3", "msxml6", "gdiplus"), False),
]
WINETRICKS_MODERN_STEPS: list[tuple[tuple[str, ...], bool]] = [
    (("dotnet48",), True),
    (("vcrun2019",), True),
]
WINETRICKS_GRAPHICS_STEP: tuple[tuple[str, ...], bool] = (("dxvk_async=disabled", "d3d11=native"), True)

# (key, value name, data, type)
REGISTRY_TWEAKS: list[tuple[str, str, str, str]] = [
    (r"HKCU\Software\Wine\Direct3D", "csmt", "1", "REG_DWORD"),
    (r"HKCU\Software\Wine\Direct3D", "shader_backend", "glsl", "REG_SZ"),
    (r"HKCU\Software\Wine\Direct3D", "DirectDrawRenderer", "opengl", "REG_SZ"),
    (r"HKCU\Software\Wine\Direct3D", "StrictDrawOrdering", "disabled", "REG_SZ"),
    (r"HKCU\Control Panel\Desktop", "LogPixels", "96", "REG_DWORD"),
    (r"HKCU\Software\Wine\Fonts", "Smoothing", "2", "REG_DWORD"),
    (r"HKCU\Software\Microsoft\Internet Explorer\Main", "DisableScriptDebugger", "yes", "REG_SZ"),
    (r"HKCU\Software\Microsoft\Internet Explorer\Main", "DisableFirstRunCustomize", "1", "REG_SZ"),
]

GPU_REGISTRY_KEY = r"HKCU\Software\Adobe\Photoshop\Settings"
GPU_REGISTRY_VALUES = ("GPUAcceleration", "useOpenCL", "useGraphicsProcessor")

WINDOWS_VERSION_KEY = r"HKEY_LOCAL_MACHINE\Software\Microsoft\Windows NT\CurrentVersion"

DARK_MODE_COLORS = (
    ("ActiveBorder", "49 54 58"),
    ("ActiveTitle", "49 54 58"),
    ("AppWorkSpace", "60 64 72"),
    ("Background", "49 54 58"),
    ("ButtonAlternativeFace", "200 0 0"),
    ("ButtonDkShadow", "154 154 154"),
    ("ButtonFace", "49 54 58"),
    ("ButtonHilight", "119 126 140"),
    ("ButtonLight", "60 64 72"),
    ("ButtonShadow", "60 64 72"),
    ("ButtonText", "219 220 222"),
    ("GradientActiveTitle", "49 54 58"),
    ("GradientInactiveTitle", "49 54 58"),
    ("GrayText", "155 155 155"),
    ("Hilight", "119 126 140"),
    ("HilightText", "255 255 255"),
    ("InactiveBorder", "49 54 58"),
    ("InactiveTitle", "49 54 58"),
    ("InactiveTitleText", "219 220 222"),
    ("InfoText", "159 167 180"),
    ("InfoWindow", "49 54 58"),
    ("Menu", "49 54 58"),
    ("MenuBar", "49 54 58"),
    ("MenuHilight", "119 126 140"),
    ("MenuText", "219 220 222"),
    ("Scrollbar", "73 78 88"),
    ("TitleText", "219 220 222"),
    ("Window", "35 38 41"),
    ("WindowFrame", "49 54 58"),
    ("WindowText", "219 220 222"),
)

# =============================================================================
# Photoshop
# =============================================================================

DEFAULT_PHOTOSHOP_VERSION = "CC 2019"

# Relative to drive_c; "{user}" is the Linux user name
PHOTOSHOP_EXE_CANDIDATES = (
    "Program Files/Adobe/Adobe Photoshop 2021/Photoshop.exe",
    "Program Files/Adobe/Adobe Photoshop CC 2021/Photoshop.exe",
    "Program Files/Adobe/Adobe Photoshop 2022/Photoshop.exe",
    "Program Files/Adobe/Adobe Photoshop CC 2019/Photoshop.exe",
    "Program Files/Adobe/Adobe Photoshop CC 2018/Photoshop.exe",
    "users/{user}/PhotoshopSE/Photoshop.exe",
    "Program Files (x86)/Adobe/Adobe Photoshop CC 2021/Photoshop.exe",
    "Program Files (x86)/Adobe/Adobe Photoshop CC 2019/Photoshop.exe",
)

# Relative to the Photoshop install directory
PROBLEMATIC_PLUGINS = (
    "Required/Plug-ins/Spaces/Adobe Spaces Helper.exe",
    "Required/CEP/extensions/com.adobe.DesignLibraryPanel.html",
    "Required/Plug-ins/Extensions/ScriptingSupport.8li",
    "Required/CEP/extensions/com.adobe.HomePagePanel.html",
    "Required/CEP/extensions/com.adobe.HomePagePanel",
)

GPU_PREFS_CONTENT = "useOpenCL 0\nuseGraphicsProcessor 0\nGPUAcceleration 0\n"

# IMAGE_FILE_HEADER.Machine values
PE_MACHINE_NAMES = {
    0xAA64: "ARM64",
    0x8664: "AMD64",
    0x14C: "i386",
}

# =============================================================================
# Desktop Integration
# =============================================================================

PHOTOSHOP_MIME_TYPES: list[tuple[str, tuple[str, ...]]] = [
    ("image/vnd.adobe.photoshop", ("*.psd", "*.PSD")),
    ("image/x-photoshop", ("*.psd", "*.psb", "*.PSD", "*.PSB")),
    ("application/x-photoshop", ("*.psd", "*.psb", "*.PSD", "*.PSB")),
]

LEGACY_DESKTOP_ENTRIES = (
    "photoshop.desktop",
    "Adobe Photoshop CC 2019.desktop",
    "Adobe Photoshop.desktop",
    "photoshopCC.desktop",
    "Adobe Photoshop 2021.desktop",
    "Adobe Photoshop 2022.desktop",
)

DESKTOP_SHORTCUT_DIRS = ("Desktop", "Schreibtisch", "desktop", "schreibtisch")

ICON_SIZES = (16, 22, 24, 32, 48, 64, 128, 256, 512)

DESKTOP_ENVIRONMENTS = {
    "kde": "KDE",
    "plasma": "KDE",
    "gnome": "GNOME",
    "xfce": "XFCE",
    "mate": "MATE",
    "cinnamon": "Cinnamon",
    "lxqt": "LXQT",
}

DESKTOP_SHELL_PROCESSES = (
    ("plasmashell", "KDE"),
    ("kwin", "KDE"),
    ("gnome-shell", "GNOME"),
    ("xfce4-session", "XFCE"),
    ("mate-session", "MATE"),
    ("cinnamon", "Cinnamon"),
    ("lxqt-session", "LXQT"),
)

PACKAGE_MANAGERS: dict[str, tuple[str, ...]] = {
    "pacman": ("sudo", "pacman", "-Rns", "--noconfirm"),
    "apt": ("sudo", "apt", "remove", "-y"),
    "dnf": ("sudo", "dnf", "remove", "-y"),
}

REQUIRED_TOOLS = ("wine", "winetricks")
