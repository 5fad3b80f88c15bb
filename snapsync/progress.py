# Copyright Red Hat
#
# snapsync/progress.py - Snapshot sync terminal control
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Terminal colour control for rendered diffs and change summaries.
"""
from typing import Dict, Optional, TextIO
import curses
import sys
import re

#: Colour modes accepted by ``TermControl``
COLOR_MODES = ("auto", "always", "never")

#: Foreground colours in terminfo ``setaf`` index order
_COLOR_NAMES = ("BLACK", "RED", "GREEN", "YELLOW", "BLUE", "MAGENTA", "CYAN", "WHITE")

#: Text attributes and their terminfo capability names
_ATTRIBUTE_CAPS: Dict[str, str] = {"BOLD": "bold", "DIM": "dim", "NORMAL": "sgr0"}

#: Plain ANSI attribute sequences used when terminfo is unavailable
_ANSI_ATTRIBUTES: Dict[str, str] = {"BOLD": "\033[1m", "DIM": "\033[2m", "NORMAL": "\033[0m"}

_TEMPLATE_RE = re.compile(r"\$\$|\$\{(\w+)\}")


class TermControl:
    """
    Colour and attribute control sequences for one output stream.

    Every name in ``_COLOR_NAMES`` and ``_ATTRIBUTE_CAPS`` is an instance
    attribute holding a control sequence, or ``""`` when colour is disabled
    or unsupported, so callers can always write:

        >>> tc = TermControl()
        >>> print(tc.GREEN + "+added" + tc.NORMAL)
    """

    def __init__(self, term_stream: Optional[TextIO] = None, color: str = "auto"):
        """
        Initialise terminal capabilities for ``term_stream``.

        In "auto" mode colour is only enabled for a tty. In "always" mode
        plain ANSI sequences are used if terminfo cannot be set up.

        :param term_stream: The output stream (``sys.stdout`` by default).
        :type term_stream: ``Optional[TextIO]``
        :param color: One of "auto", "always" or "never".
        :type color: ``str``
        :raises ValueError: if ``color`` is not a valid mode.
        """
        if color not in COLOR_MODES:
            raise ValueError(f"Invalid color mode: {color}")

        self.term_stream = term_stream if term_stream is not None else sys.stdout
        #: Terminal width, when known
        self.columns: Optional[int] = None
        for name in _COLOR_NAMES + tuple(_ATTRIBUTE_CAPS):
            setattr(self, name, "")

        if color == "never" or (color == "auto" and not self._isatty()):
            return

        try:
            curses.setupterm()
        # curses.error is not importable until curses has been initialised.
        except BaseException as err:  # pylint: disable=broad-exception-caught
            if isinstance(err, (KeyboardInterrupt, SystemExit)):
                raise
            if color == "always":
                self._use_ansi()
            return

        self._use_terminfo()

    def _isatty(self) -> bool:
        isatty = getattr(self.term_stream, "isatty", None)
        return bool(isatty and isatty())

    def _use_ansi(self):
        for index, name in enumerate(_COLOR_NAMES):
            setattr(self, name, f"\033[3{index}m")
        for name, seq in _ANSI_ATTRIBUTES.items():
            setattr(self, name, seq)

    def _use_terminfo(self):
        self.columns = curses.tigetnum("cols")
        for name, cap_name in _ATTRIBUTE_CAPS.items():
            setattr(self, name, self._capability(cap_name))

        setaf = self._capability("setaf")
        if not setaf:
            return
        for index, name in enumerate(_COLOR_NAMES):
            seq = curses.tparm(setaf.encode("utf8"), index)
            setattr(self, name, seq.decode("utf8") if seq else "")

    @staticmethod
    def _capability(cap_name: str) -> str:
        # Drop "$<n>" padding delays.
        cap = curses.tigetstr(cap_name)
        return cap.decode("utf8").split("$", maxsplit=1)[0] if cap else ""

    def render(self, template: str) -> str:
        """
        Expand ``${NAME}`` references in ``template`` to control sequences.
        Unknown names expand to ``""`` and ``$$`` to a literal ``$``.

        :param template: A template string.
        :type template: ``str``
        :returns: The expanded string.
        :rtype: ``str``
        """
        return _TEMPLATE_RE.sub(
            lambda match: getattr(self, match.group(1), "") if match.group(1) else "$",
            template,
        )
