import os
import select
import shutil
import sys
import termios
import tty
from contextlib import contextmanager
from typing import Callable, List, Optional

from .wizard import Key, Panel, RecipeWizard, WizardAction

CLEAR = "\x1b[2J\x1b[H"
ENTER_ALT_SCREEN = "\x1b[?1049h"
LEAVE_ALT_SCREEN = "\x1b[?1049l"


@contextmanager
def raw_terminal(stream=None):
    """Put the terminal in raw mode on an alternate screen for the block."""
    stream = stream or sys.stdin
    fd = stream.fileno()
    saved = termios.tcgetattr(fd)
    sys.stdout.write(ENTER_ALT_SCREEN)
    sys.stdout.flush()
    try:
        tty.setraw(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)
        sys.stdout.write(LEAVE_ALT_SCREEN)
        sys.stdout.flush()


def decode_key(data: str) -> Optional[Key]:
    """Map raw terminal input to a wizard key; None for anything unmapped."""
    if data in ("\r", "\n"):
        return Key.enter()
    if data in ("\x7f", "\x08"):
        return Key.backspace()
    if data == "\x1b":
        return Key.escape()
    if len(data) == 1 and data.isprintable():
        return Key.of(data)
    return None


def read_key(stream=None) -> Optional[Key]:
    stream = stream or sys.stdin
    fd = stream.fileno()
    raw = os.read(fd, 1)
    if not raw:
        # end of input ends the wizard the same way escape does
        return Key.escape()
    if raw == b"\x1b":
        # lone escape cancels; escape sequences (arrows etc.) are ignored
        pending, _, _ = select.select([fd], [], [], 0.05)
        if pending:
            os.read(fd, 32)
            return None
    elif raw[0] >= 0xC0:
        # rest of a multi-byte utf-8 character
        extra = 1 if raw[0] < 0xE0 else 2 if raw[0] < 0xF0 else 3
        raw += os.read(fd, extra)
    return decode_key(raw.decode("utf-8", errors="ignore"))


def format_panels(panels: List[Panel], width: int) -> str:
    width = max(width, 20)
    inner = width - 4
    out = []
    for panel in panels:
        title = f" {panel.title} "[: width - 4]
        out.append("┌─" + title + "─" * (width - 3 - len(title)) + "┐")
        for line in panel.lines or [""]:
            out.append("│ " + line[:inner].ljust(inner) + " │")
        out.append("└" + "─" * (width - 2) + "┘")
    # raw mode needs explicit carriage returns
    return "\r\n".join(out)


def paint(panels: List[Panel]):
    width = shutil.get_terminal_size().columns
    sys.stdout.write(CLEAR + format_panels(panels, width))
    sys.stdout.flush()


def run_wizard(
    wizard: RecipeWizard,
    next_key: Callable[[], Optional[Key]] = read_key,
    draw: Callable[[List[Panel]], None] = paint,
) -> WizardAction:
    """Read, update, redraw until the wizard finishes or is cancelled."""
    while True:
        draw(wizard.render())
        key = next_key()
        if key is None:
            continue
        action = wizard.handle_key(key)
        if action is not WizardAction.CONTINUE:
            return action
