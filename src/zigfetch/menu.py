# src/zigfetch/menu.py

import curses
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence, TypeVar

from pick import pick

from zigfetch.constants import MENU_INDICATOR, MENU_QUIT_KEYS
from zigfetch.exceptions import TerminalUnavailableError, UserCancelled
from zigfetch.targets import (
    SUPPORTED_ARCHITECTURES,
    Architecture,
    InstallTarget,
    MenuAction,
    OperatingSystem,
    detect_host_target,
    label,
)

E = TypeVar("E", bound=Enum)


def _select(title: str, variants: Sequence[E], default: Optional[E] = None) -> E:
    """
    Show a single-choice menu of enum variants and return the chosen one.

    Raises:
        UserCancelled: If the user presses a quit key or interrupts the menu.
        TerminalUnavailableError: If curses cannot drive the terminal.
    """
    options = [label(variant) for variant in variants]
    default_index = variants.index(default) if default in variants else 0
    try:
        _option, index = pick(
            options,
            title,
            indicator=MENU_INDICATOR,
            default_index=default_index,
            quit_keys=MENU_QUIT_KEYS,
        )
    except KeyboardInterrupt as e:
        raise UserCancelled() from e
    except curses.error as e:
        raise TerminalUnavailableError(str(e)) from e
    if index is None or index < 0:
        raise UserCancelled()
    return variants[index]


class Prompter:
    """
    Interactive questions asked during an install.

    Every method blocks until the user answers and raises UserCancelled when they
    back out, so callers never see a half-answered selection.
    """

    def select_action(self) -> MenuAction:
        return _select("Select your action:", list(MenuAction))

    def select_operating_system(self) -> OperatingSystem:
        host = detect_host_target()
        return _select(
            "Select your system",
            list(OperatingSystem),
            default=host.operating_system if host else None,
        )

    def select_architecture(self, operating_system: OperatingSystem) -> Architecture:
        choices = SUPPORTED_ARCHITECTURES[operating_system]
        if len(choices) == 1:
            return choices[0]
        host = detect_host_target()
        return _select(
            "Select your architecture",
            list(choices),
            default=host.architecture if host else None,
        )

    def select_target(self) -> InstallTarget:
        operating_system = self.select_operating_system()
        return InstallTarget(operating_system, self.select_architecture(operating_system))

    def confirm_destination(self, path: Path) -> bool:
        """
        Ask whether to unpack into `path`; an empty answer means yes.

        Raises:
            UserCancelled: On Ctrl-C or end of input.
        """
        try:
            answer = (
                input(f"Want to unpack to default ({path})? [y/n] (default: yes): ")
                .strip()
                .lower()
                or "y"
            )
        except (EOFError, KeyboardInterrupt) as e:
            raise UserCancelled() from e
        return answer in ("y", "yes")
