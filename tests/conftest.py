import curses

import pytest

from dna_rain import QUIT_KEYS, TerminalError


class FakeTerminal:
    """Records what the rain draws instead of talking to curses."""

    def __init__(self, width=20, height=12, keys=(), fail_on=None):
        self.width = width
        self.height = height
        self.keys = list(keys)
        self.fail_on = fail_on
        self.calls = []
        self.cells = []
        self.flushes = 0
        self.setups = 0
        self.restores = 0
        self._pos = None
        self._color = None

    def _check(self, name):
        self.calls.append(name)
        if name == self.fail_on:
            raise TerminalError(f"{name} failed")

    def setup(self):
        self.setups += 1
        self._check("setup")

    def restore(self):
        self.restores += 1

    def size(self):
        return self.width, self.height

    def move_to(self, x, y):
        self._check("move_to")
        self._pos = (x, y)

    def set_foreground(self, rgb):
        self._color = rgb

    def write(self, ch):
        self._check("write")
        x, y = self._pos
        self.cells.append((x, y, ch, self._color if ch != ' ' else None))

    def flush(self):
        self._check("flush")
        self.flushes += 1

    def poll_key(self, timeout_ms=None):
        self._check("poll_key")
        if not self.keys:
            return QUIT_KEYS[0]
        return self.keys.pop(0)


class FakeScreen:
    """Just enough of a curses window for the Terminal adapter."""

    def __init__(self, width=10, height=5, keys=(), fail=()):
        self.width = width
        self.height = height
        self.keys = list(keys)
        self.fail = set(fail)
        self.cursor = (0, 0)
        self.written = []
        self.timeouts = []
        self.refreshes = 0
        self.keypad_enabled = False

    def getmaxyx(self):
        return self.height, self.width

    def move(self, y, x):
        if "move" in self.fail or not (0 <= y < self.height and 0 <= x < self.width):
            raise curses.error("move() returned ERR")
        self.cursor = (y, x)

    def addstr(self, text, attr=0):
        y, x = self.cursor
        if "addstr" in self.fail:
            raise curses.error("addstr() returned ERR")
        self.written.append((y, x, text, attr))
        # Real curses reports ERR once the cursor cannot move past the last cell
        if (y, x) == (self.height - 1, self.width - 1):
            raise curses.error("addwstr() returned ERR")
        self.cursor = (y, x + len(text))

    def refresh(self):
        if "refresh" in self.fail:
            raise curses.error("refresh() returned ERR")
        self.refreshes += 1

    def timeout(self, ms):
        self.timeouts.append(ms)

    def keypad(self, flag):
        self.keypad_enabled = flag

    def getch(self):
        if "getch" in self.fail:
            raise curses.error("getch() returned ERR")
        if not self.keys:
            return -1
        return self.keys.pop(0)


@pytest.fixture
def fake_terminal():
    return FakeTerminal()


@pytest.fixture
def fake_screen():
    return FakeScreen()
