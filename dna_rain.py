#!/usr/bin/env python3
import curses
import logging
import random
import sys

logger = logging.getLogger(__name__)

# --- Configuration ---
NUCLEOTIDES = "ATCGU"        # Initial fill draws from all five
REGEN_NUCLEOTIDES = NUCLEOTIDES[:4]  # Refills after a wrap leave out U
MIN_TRAIL_LENGTH = 4         # Shortest trail, whatever the terminal height
TRAIL_DIVISOR = 3            # Trail covers a third of the screen
STREAM_SPEED_MIN = 1         # Rows per frame, inclusive range
STREAM_SPEED_MAX = 1
COLUMN_SPACING = 2           # One column on every second cell
FRAME_TIMEOUT_MS = 60        # Input poll timeout, also paces the frames
ESC_DELAY_MS = 25            # Otherwise curses holds Esc for a full second
QUIT_KEYS = (ord('q'), 27)   # 'q' or Esc

HEAD_COLOR = (255, 255, 255)
DEFAULT_COLOR = (0, 200, 0)
NUCLEOTIDE_COLORS = {
    'A': (0, 200, 0),        # green
    'T': (200, 0, 0),        # red
    'C': (0, 100, 255),      # blue
    'G': (220, 220, 0),      # yellow
    'U': (153, 51, 255),     # purple
}

# Channel levels of the 6x6x6 cube in the xterm 256-colour palette
XTERM_CUBE_LEVELS = (0, 95, 135, 175, 215, 255)


class TerminalError(Exception):
    """A terminal operation failed (setup, drawing, refresh or input)."""


# --- Colours ---
def nucleotide_color(ch):
    return NUCLEOTIDE_COLORS.get(ch, DEFAULT_COLOR)


def fade(i, trail_length):
    """Brightness factor for the i-th cell behind the head."""
    return 1.0 - i / trail_length


def scale_color(rgb, factor):
    return tuple(int(channel * factor) for channel in rgb)


def _nearest_cube_index(channel):
    return min(range(len(XTERM_CUBE_LEVELS)),
               key=lambda n: abs(XTERM_CUBE_LEVELS[n] - channel))


def rgb_to_xterm256(rgb):
    """Nearest entry of the 256-colour cube (indices 16-231)."""
    r, g, b = (_nearest_cube_index(channel) for channel in rgb)
    return 16 + 36 * r + 6 * g + b


def rgb_to_basic(rgb):
    """Nearest of the eight basic colours, plus whether to dim it.

    Channels at or above half the brightest one are switched on, so a
    faded colour keeps its hue and gets A_DIM instead.
    """
    brightest = max(rgb)
    if brightest == 0:
        return curses.COLOR_BLACK, True
    half = brightest / 2.0
    r, g, b = (channel >= half for channel in rgb)
    # curses numbers the basic colours as a red/green/blue bit mask
    color = (curses.COLOR_RED if r else 0) | (curses.COLOR_GREEN if g else 0) \
        | (curses.COLOR_BLUE if b else 0)
    return color, brightest < 128


class ColorPalette:
    """Maps RGB foregrounds onto curses attributes, one colour pair per colour."""

    def __init__(self, has_colors, colors, color_pairs, background=-1):
        self.has_colors = has_colors
        self.has_256 = colors >= 256
        self.color_pairs = color_pairs
        self.background = background
        self._attrs = {}
        self._pairs = {}  # fg -> pair number
        self._next = 1

    def attr(self, rgb):
        if rgb in self._attrs:
            return self._attrs[rgb]

        if not self.has_colors:
            attr = curses.A_BOLD if rgb == HEAD_COLOR else curses.A_NORMAL
        elif self.has_256:
            attr = self._pair(rgb_to_xterm256(rgb))
        else:
            fg, dim = rgb_to_basic(rgb)
            attr = self._pair(fg) | (curses.A_DIM if dim else curses.A_NORMAL)

        self._attrs[rgb] = attr
        return attr

    def _pair(self, fg):
        if fg in self._pairs:
            return curses.color_pair(self._pairs[fg])

        pid = self._next
        # Out of pairs: keep drawing with the terminal's default colours
        if pid >= self.color_pairs:
            return curses.color_pair(0)
        try:
            curses.init_pair(pid, fg, self.background)
        except curses.error as exc:
            raise TerminalError(f"cannot allocate colour pair {pid}") from exc

        self._pairs[fg] = pid
        self._next += 1
        return curses.color_pair(pid)


# --- Terminal ---
class Terminal:
    """Curses window plus the handful of operations the rain needs."""

    def __init__(self, screen=None, palette=None):
        self.screen = screen
        self.palette = palette
        self._attr = curses.A_NORMAL
        self._cursor = (0, 0)

    def setup(self):
        """Raw mode, alternate screen, hidden cursor, colours."""
        try:
            self.screen = curses.initscr()
            curses.raw()
            curses.noecho()
            self.screen.keypad(True)
            curses.set_escdelay(ESC_DELAY_MS)
            self.screen.timeout(FRAME_TIMEOUT_MS)

            background = -1
            if curses.has_colors():
                curses.start_color()
                try:
                    curses.use_default_colors()
                except curses.error:
                    background = curses.COLOR_BLACK
                self.palette = ColorPalette(True, curses.COLORS, curses.COLOR_PAIRS, background)
            else:
                self.palette = ColorPalette(False, 0, 0)

            curses.curs_set(0)
        except curses.error as exc:
            raise TerminalError(f"terminal setup failed: {exc}") from exc

    def restore(self):
        """Give the user back the shell they started from."""
        if self.screen is None:
            return
        try:
            curses.curs_set(1)
        except curses.error:
            # Some terminals cannot change cursor visibility at all
            logger.debug("cursor visibility not supported")
        try:
            curses.noraw()
            curses.endwin()
        except curses.error as exc:
            raise TerminalError(f"terminal restore failed: {exc}") from exc
        finally:
            self.screen = None

    def size(self):
        height, width = self.screen.getmaxyx()
        return width, height

    def move_to(self, x, y):
        try:
            self.screen.move(y, x)
        except curses.error as exc:
            raise TerminalError(f"cannot move cursor to ({x}, {y})") from exc
        self._cursor = (x, y)

    def set_foreground(self, rgb):
        self._attr = self.palette.attr(rgb)

    def write(self, ch):
        try:
            self.screen.addstr(ch, self._attr)
        except curses.error as exc:
            # Curses writes the lower-right cell, then fails to advance the cursor
            if not self._at_lower_right():
                x, y = self._cursor
                raise TerminalError(f"cannot write at ({x}, {y})") from exc

    def _at_lower_right(self):
        width, height = self.size()
        return self._cursor == (width - 1, height - 1)

    def flush(self):
        try:
            self.screen.refresh()
        except curses.error as exc:
            raise TerminalError("screen refresh failed") from exc

    def poll_key(self, timeout_ms=None):
        """Wait up to timeout_ms for a key; None if nothing arrived."""
        if timeout_ms is not None:
            self.screen.timeout(timeout_ms)
        try:
            key = self.screen.getch()
        except curses.error as exc:
            raise TerminalError("reading input failed") from exc
        return None if key == -1 else key


# --- Rain ---
class Column:
    """A single falling stream of nucleotides at a fixed x."""

    def __init__(self, x, height):
        self.x = x
        self.trail_length = max(height // TRAIL_DIVISOR, MIN_TRAIL_LENGTH)
        self.y = random.randrange(-self.trail_length, 0)  # Start above screen
        self.speed = random.randint(STREAM_SPEED_MIN, STREAM_SPEED_MAX)
        self.characters = [random.choice(NUCLEOTIDES) for _ in range(height)]

    def cells(self, height):
        """(row, character, rgb) for every visible cell, head first."""
        limit = min(height, len(self.characters))
        cells = []
        for i in range(self.trail_length + 1):
            row = self.y - i
            if not 0 <= row < limit:
                continue
            ch = self.characters[row]
            if i == 0:
                color = HEAD_COLOR
            else:
                color = scale_color(nucleotide_color(ch), fade(i, self.trail_length))
            cells.append((row, ch, color))
        return cells

    def draw(self, terminal, height):
        for row, ch, color in self.cells(height):
            terminal.move_to(self.x, row)
            terminal.set_foreground(color)
            terminal.write(ch)

        # Blank the cell the tail left behind last frame
        erase_row = self.y - self.trail_length - 1
        if 0 <= erase_row < height:
            terminal.move_to(self.x, erase_row)
            terminal.write(' ')

    def update(self, height):
        self.y += self.speed
        if self.y - self.trail_length > height:
            self.y = random.randrange(-self.trail_length, 0)
            # Fresh letters for the next pass; U only shows up on the first one
            for row in range(len(self.characters)):
                self.characters[row] = random.choice(REGEN_NUCLEOTIDES)

    def phase(self, height):
        """Where the stream is relative to the screen, derived from y alone."""
        if self.y < 0:
            return "above"
        if self.y - self.trail_length < 0:
            return "entering"
        if self.y < height:
            return "visible"
        return "exiting"


class Scene:
    """Every column across the terminal, plus the frame loop."""

    def __init__(self, terminal):
        self.terminal = terminal
        self.width, self.height = terminal.size()
        self.columns = [Column(x, self.height)
                        for x in range(0, self.width, COLUMN_SPACING)]
        logger.debug("scene %dx%d with %d columns",
                     self.width, self.height, len(self.columns))

    @staticmethod
    def is_quit_key(key):
        return key in QUIT_KEYS

    def step(self):
        """Draw and advance every column, then push the frame out."""
        for column in self.columns:
            column.draw(self.terminal, self.height)
            column.update(self.height)
        self.terminal.flush()

    def run(self):
        while True:
            key = self.terminal.poll_key(FRAME_TIMEOUT_MS)
            if key is not None and self.is_quit_key(key):
                logger.debug("quit on key %d", key)
                break
            # Timeouts and other keys (KEY_RESIZE included) just draw a frame
            self.step()


def session(terminal):
    """Run the rain, always putting the terminal back afterwards."""
    try:
        terminal.setup()
        Scene(terminal).run()
    finally:
        terminal.restore()


def main():
    try:
        session(Terminal())
    except TerminalError as e:
        print(f"A terminal error occurred: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        pass
    return 0


# --- Run the application ---
if __name__ == "__main__":
    sys.exit(main())
