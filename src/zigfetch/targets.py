# src/zigfetch/targets.py
"""
Selectable values for an install: menu action, operating system and architecture.

Domain values are plain enums; the text shown in menus comes from `label()`.
"""

import platform
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from zigfetch.constants import (
    PLATFORM_KEY_AARCH64_MACOS,
    PLATFORM_KEY_X86_64_LINUX,
    PLATFORM_KEY_X86_64_MACOS,
)


class MenuAction(Enum):
    INSTALL_ZIG = "install-zig"
    QUIT = "quit"


class OperatingSystem(Enum):
    LINUX = "linux"
    MACOS = "macos"


class Architecture(Enum):
    X86_64 = "x86_64"
    AARCH64 = "aarch64"


_LABELS = {
    MenuAction.INSTALL_ZIG: "Download latest Zig binary",
    MenuAction.QUIT: "Quit",
    OperatingSystem.LINUX: "Linux",
    OperatingSystem.MACOS: "Mac",
    Architecture.X86_64: "x86_64",
    Architecture.AARCH64: "aarch64",
}

# Architectures offered per operating system; Linux builds are x86_64 only
SUPPORTED_ARCHITECTURES = {
    OperatingSystem.LINUX: (Architecture.X86_64,),
    OperatingSystem.MACOS: (Architecture.X86_64, Architecture.AARCH64),
}

_PLATFORM_KEYS = {
    (OperatingSystem.LINUX, Architecture.X86_64): PLATFORM_KEY_X86_64_LINUX,
    (OperatingSystem.MACOS, Architecture.X86_64): PLATFORM_KEY_X86_64_MACOS,
    (OperatingSystem.MACOS, Architecture.AARCH64): PLATFORM_KEY_AARCH64_MACOS,
}


def label(variant: Enum) -> str:
    """Return the menu text for a MenuAction, OperatingSystem or Architecture."""
    return _LABELS[variant]


@dataclass(frozen=True)
class InstallTarget:
    """
    The user's platform selection.

    Linux always resolves to the x86_64 build, whatever architecture is given.
    """

    operating_system: OperatingSystem
    architecture: Architecture = Architecture.X86_64

    @property
    def platform_key(self) -> str:
        """Key of this target in the release index, e.g. "aarch64-macos"."""
        if self.operating_system is OperatingSystem.LINUX:
            return PLATFORM_KEY_X86_64_LINUX
        return _PLATFORM_KEYS[(self.operating_system, self.architecture)]


def detect_host_target() -> Optional[InstallTarget]:
    """
    Guess the InstallTarget matching the running machine.

    Returns:
        InstallTarget | None: The detected target, or None when the host is not
        one of the supported platforms.
    """
    system = platform.system()
    machine = platform.machine().lower()
    if machine in ("arm64", "aarch64"):
        arch = Architecture.AARCH64
    elif machine in ("x86_64", "amd64"):
        arch = Architecture.X86_64
    else:
        return None

    if system == "Darwin":
        return InstallTarget(OperatingSystem.MACOS, arch)
    if system == "Linux" and arch is Architecture.X86_64:
        return InstallTarget(OperatingSystem.LINUX, arch)
    return None
