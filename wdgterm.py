#!/usr/bin/env python3

# Copyright (c) 2026 wdg contributors
# SPDX-License-Identifier: ISC

"""
wdgterm -- pure-Python terminal backend for the wdg widget core

Provides what the core needs from a terminal and nothing more: cbreak-mode
setup and restore, a key read bounded by a timeout (the equivalent of
curses' halfdelay()), resize detection, a color capability check, and
rectangular regions composited onto the screen with frame diffing. A single
diagnostic message line can be shown at the bottom of the screen.

Zero external dependencies. Unix uses termios and poll(2); Windows 10+ uses
VT100 console modes through ctypes and msvcrt.
"""

import codecs
import collections
import os
import shutil
import signal
import sys
import time
import unicodedata

_IS_WINDOWS = os.name == "nt"

if not _IS_WINDOWS:
    import select
    import termios


# ---------------------------------------------------------------------------
# Colors and styles
# ---------------------------------------------------------------------------


class Color:
    """Terminal color: the terminal default, a named color or a 256-color
    palette index."""

    __slots__ = ("_kind", "_value")

    def __init__(self, kind, value):
        self._kind = kind
        self._value = value

    DEFAULT = None
    BLACK = None
    RED = None
    GREEN = None
    YELLOW = None
    BLUE = None
    MAGENTA = None
    CYAN = None
    WHITE = None

    @staticmethod
    def index(n):
        return Color("index", n)

    def sgr(self, background):
        if self._kind == "default":
            return "49" if background else "39"
        if self._kind == "named":
            return str((40 if background else 30) + self._value)
        return "{};5;{}".format(48 if background else 38, self._value)

    def __eq__(self, other):
        if not isinstance(other, Color):
            return NotImplemented
        return self._kind == other._kind and self._value == other._value

    def __hash__(self):
        return hash((self._kind, self._value))

    def __repr__(self):
        if self._kind == "default":
            return "Color.DEFAULT"
        return f"Color({self._kind!r}, {self._value!r})"


Color.DEFAULT = Color("default", None)
for _i, _name in enumerate(
    ("BLACK", "RED", "GREEN", "YELLOW", "BLUE", "MAGENTA", "CYAN", "WHITE")
):
    setattr(Color, _name, Color("named", _i))
del _i, _name


class Style:
    """Immutable combination of colors and text attributes."""

    __slots__ = ("fg", "bg", "bold", "standout", "underline")

    def __init__(self, fg=None, bg=None, bold=False, standout=False, underline=False):
        self.fg = fg if fg is not None else Color.DEFAULT
        self.bg = bg if bg is not None else Color.DEFAULT
        self.bold = bold
        self.standout = standout
        self.underline = underline

    def sgr(self):
        """Return the full SGR escape sequence selecting this style."""
        codes = ["0"]
        if self.bold:
            codes.append("1")
        if self.underline:
            codes.append("4")
        if self.standout:
            codes.append("7")
        codes.append(self.fg.sgr(False))
        codes.append(self.bg.sgr(True))
        return "\x1b[" + ";".join(codes) + "m"

    def _key(self):
        return (self.fg, self.bg, self.bold, self.standout, self.underline)

    def __eq__(self, other):
        if not isinstance(other, Style):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return "Style(fg={!r}, bg={!r}, bold={}, standout={}, underline={})".format(
            *self._key()
        )


STYLE_DEFAULT = Style()


# ---------------------------------------------------------------------------
# Keys and box-drawing characters
# ---------------------------------------------------------------------------


class Key:
    """Named constants for keys that don't map to a single character."""

    UP = "key_up"
    DOWN = "key_down"
    LEFT = "key_left"
    RIGHT = "key_right"
    PAGE_UP = "key_page_up"
    PAGE_DOWN = "key_page_down"
    HOME = "key_home"
    END = "key_end"
    BACKSPACE = "key_backspace"
    DELETE = "key_delete"
    BTAB = "key_btab"
    RESIZE = "key_resize"


class Box:
    HLINE = "─"
    VLINE = "│"
    ULCORNER = "┌"
    URCORNER = "┐"
    LLCORNER = "└"
    LRCORNER = "┘"


def char_width(ch):
    """Return the number of cells 'ch' occupies: 0, 1 or 2."""
    o = ord(ch)
    if 0x20 <= o <= 0x7E:
        return 1
    if o < 0x20 or o == 0x7F:
        return 0
    if unicodedata.east_asian_width(ch) in ("W", "F"):
        return 2
    if unicodedata.category(ch).startswith("M"):
        return 0
    return 1


# ---------------------------------------------------------------------------
# Input parsing
# ---------------------------------------------------------------------------

# Several entries per key to cover xterm, rxvt, tmux and application mode
_ESCAPE_SEQUENCES = {
    "\x1b[A": Key.UP,
    "\x1bOA": Key.UP,
    "\x1b[B": Key.DOWN,
    "\x1bOB": Key.DOWN,
    "\x1b[C": Key.RIGHT,
    "\x1bOC": Key.RIGHT,
    "\x1b[D": Key.LEFT,
    "\x1bOD": Key.LEFT,
    "\x1b[5~": Key.PAGE_UP,
    "\x1b[6~": Key.PAGE_DOWN,
    "\x1b[H": Key.HOME,
    "\x1bOH": Key.HOME,
    "\x1b[1~": Key.HOME,
    "\x1b[7~": Key.HOME,
    "\x1b[F": Key.END,
    "\x1bOF": Key.END,
    "\x1b[4~": Key.END,
    "\x1b[8~": Key.END,
    "\x1b[3~": Key.DELETE,
    "\x1b[Z": Key.BTAB,
}


def _build_trie(sequences):
    root = {}
    for seq, key in sequences.items():
        node = root
        for ch in seq[:-1]:
            node = node.setdefault(ch, {})
        node[seq[-1]] = key
    return root


_ESCAPE_TRIE = _build_trie(_ESCAPE_SEQUENCES)


class KeyParser:
    """Turns a stream of decoded characters into keys.

    Characters go in through feed(). Completed keys (Key constants or
    one-character strings) queue up and are taken with get(). A lone ESC is
    only known to be a key once the input goes quiet, at which point the
    reader calls flush().
    """

    def __init__(self):
        self._node = None
        self._ready = collections.deque()

    @property
    def in_escape(self):
        return self._node is not None

    def feed(self, ch):
        if self._node is not None:
            nxt = self._node.get(ch)
            if isinstance(nxt, dict):
                self._node = nxt
                return
            self._node = None
            if nxt is not None:
                self._ready.append(nxt)
                return
            # Unknown sequence: the ESC becomes a key of its own and 'ch'
            # starts over
            self._ready.append("\x1b")

        if ch == "\x1b":
            self._node = _ESCAPE_TRIE["\x1b"]
        elif ch == "\x7f":
            self._ready.append(Key.BACKSPACE)
        elif ch == "\r":
            # Callers check "\n" for Enter regardless of ICRNL
            self._ready.append("\n")
        else:
            self._ready.append(ch)

    def flush(self):
        if self._node is not None:
            self._node = None
            self._ready.append("\x1b")

    def get(self):
        """Return the oldest completed key, or None."""
        return self._ready.popleft() if self._ready else None



# ---------------------------------------------------------------------------
# Region
# ---------------------------------------------------------------------------


class Region:
    """Rectangular cell buffer composited onto the screen.

    Created with Terminal.region(). Regions are painted in creation order,
    so later regions cover earlier ones.
    """

    def __init__(self, terminal, height, width, y, x):
        self._terminal = terminal
        self.y = y
        self.x = x
        self._fill_style = STYLE_DEFAULT
        self.resize(height, width)

    @property
    def height(self):
        return self._height

    @property
    def width(self):
        return self._width

    def resize(self, height, width):
        """Resize the region. The contents are cleared."""
        self._height = max(height, 0)
        self._width = max(width, 0)
        cell = (" ", self._fill_style)
        self._cells = [[cell] * self._width for _ in range(self._height)]

    def move(self, y, x):
        self.y = y
        self.x = x

    def fill(self, style):
        self._fill_style = style
        cell = (" ", style)
        for row in self._cells:
            row[:] = [cell] * len(row)

    def write(self, y, x, text, style=None):
        """Write 'text' at (y, x), clipped to the region. Returns the number
        of cells written."""
        if style is None:
            style = self._fill_style
        if not 0 <= y < self._height:
            return 0

        row = self._cells[y]
        col = x
        written = 0
        for ch in text.expandtabs():
            w = char_width(ch)
            if w == 0:
                continue
            if col + w > self._width:
                break
            if col >= 0:
                row[col] = (ch, style)
                # Placeholder for the right half of a wide character
                if w == 2:
                    row[col + 1] = ("", style)
                written += w
            col += w
        return written

    def cell(self, y, x):
        """Return the (character, style) pair at (y, x)."""
        return self._cells[y][x]

    def close(self):
        """Stop compositing this region."""
        if self._terminal is not None:
            self._terminal._remove_region(self)
            self._terminal = None


# ---------------------------------------------------------------------------
# Terminal
# ---------------------------------------------------------------------------


class Terminal:
    """Owns the terminal: mode switching, compositing and input."""

    def __init__(self):
        if not _IS_WINDOWS:
            for stream in sys.stdin, sys.stdout:
                if not os.isatty(stream.fileno()):
                    raise RuntimeError(f"{stream.name} is not a terminal")

        self._regions = []
        self._prev_frame = None
        self._message = None
        self._cursor_visible = True
        self._suspended = False
        self._resize_pending = False
        self._parser = KeyParser()

        sz = shutil.get_terminal_size()
        self._width = sz.columns
        self._height = sz.lines

        if _IS_WINDOWS:
            self._init_windows()
        else:
            self._init_unix()

        self._decoder = codecs.getincrementaldecoder("utf-8")("replace")

        self._enter()

    @staticmethod
    def _set_cbreak():
        fd = sys.stdin.fileno()
        attrs = termios.tcgetattr(fd)
        # Keep ISIG so that Ctrl-C still raises KeyboardInterrupt
        attrs[3] &= ~(termios.ICANON | termios.ECHO | termios.IEXTEN)
        attrs[1] &= ~(termios.IXON | termios.IXOFF | termios.ICRNL | termios.INLCR)
        attrs[6][termios.VMIN] = 1
        attrs[6][termios.VTIME] = 0
        termios.tcsetattr(fd, termios.TCSANOW, attrs)

    def _init_unix(self):
        fd = sys.stdin.fileno()
        self._old_termios = termios.tcgetattr(fd)
        self._set_cbreak()

        self._old_sigwinch = signal.getsignal(signal.SIGWINCH)
        signal.signal(signal.SIGWINCH, self._sigwinch_handler)

        self._poller = select.poll()
        self._poller.register(fd, select.POLLIN)

    def _init_windows(self):
        import ctypes
        from ctypes import wintypes

        kernel32 = ctypes.windll.kernel32
        self._kernel32 = kernel32
        self._stdin_handle = kernel32.GetStdHandle(-10)
        self._stdout_handle = kernel32.GetStdHandle(-11)

        self._old_out_mode = wintypes.DWORD()
        kernel32.GetConsoleMode(self._stdout_handle, ctypes.byref(self._old_out_mode))
        self._old_in_mode = wintypes.DWORD()
        kernel32.GetConsoleMode(self._stdin_handle, ctypes.byref(self._old_in_mode))

        # ENABLE_VIRTUAL_TERMINAL_PROCESSING on output,
        # ENABLE_VIRTUAL_TERMINAL_INPUT without ECHO/LINE/PROCESSED on input
        kernel32.SetConsoleMode(self._stdout_handle, self._old_out_mode.value | 0x0004)
        kernel32.SetConsoleMode(
            self._stdin_handle, (self._old_in_mode.value | 0x0200) & ~0x0007
        )

    def _enter(self):
        # Alternate screen, cursor hidden until show_cursor()
        self._write_raw("\x1b[?1049h")
        if not self._cursor_visible:
            self._write_raw("\x1b[?25l")
        self._flush()

    def _leave(self):
        self._write_raw("\x1b[0m\x1b[?25h\x1b[?1049l")
        self._flush()

    def close(self):
        """Restore the terminal to the state it was found in."""
        self._leave()
        if _IS_WINDOWS:
            self._kernel32.SetConsoleMode(self._stdout_handle, self._old_out_mode)
            self._kernel32.SetConsoleMode(self._stdin_handle, self._old_in_mode)
        else:
            termios.tcsetattr(sys.stdin.fileno(), termios.TCSANOW, self._old_termios)
            signal.signal(signal.SIGWINCH, self._old_sigwinch)

    def suspend(self):
        """Temporarily leave terminal mode, e.g. to print to stderr."""
        self._suspended = True
        self._leave()
        if not _IS_WINDOWS:
            termios.tcsetattr(sys.stdin.fileno(), termios.TCSANOW, self._old_termios)

    def resume(self):
        if not _IS_WINDOWS:
            self._set_cbreak()
        self._enter()
        self._suspended = False
        self._resize_pending = True

    # --- Capabilities and geometry ---

    @property
    def width(self):
        return self._width

    @property
    def height(self):
        return self._height

    def has_colors(self):
        """True unless NO_COLOR is set or the terminal is 'dumb'."""
        if "NO_COLOR" in os.environ:
            return False
        return os.environ.get("TERM", "") != "dumb" or _IS_WINDOWS

    def hide_cursor(self):
        self._cursor_visible = False
        self._write_raw("\x1b[?25l")
        self._flush()

    def show_cursor(self):
        self._cursor_visible = True
        self._write_raw("\x1b[?25h")
        self._flush()

    def _sigwinch_handler(self, signum, frame):
        # Only flag it. The size is requeried from read_key().
        self._resize_pending = True

    def _check_resize(self):
        if not self._resize_pending:
            return False
        self._resize_pending = False
        sz = shutil.get_terminal_size()
        self._width = sz.columns
        self._height = sz.lines
        self.clear()
        return True

    # --- Output ---

    def region(self, height, width, y=0, x=0):
        r = Region(self, height, width, y, x)
        self._regions.append(r)
        return r

    def _remove_region(self, region):
        if region in self._regions:
            self._regions.remove(region)

    def message(self, text):
        """Show 'text' on the bottom line, above all regions, until the next
        message replaces it."""
        self._message = text

    def clear(self):
        """Erase the physical screen and force a full repaint on the next
        update()."""
        self._prev_frame = None
        self._write_raw("\x1b[0m\x1b[2J")
        self._flush()

    def _compose(self):
        h, w = self._height, self._width
        blank = (" ", STYLE_DEFAULT)
        frame = [[blank] * w for _ in range(h)]

        for r in self._regions:
            for row in range(max(0, -r.y), min(r.height, h - r.y)):
                src = r._cells[row]
                dst = frame[r.y + row]
                for col in range(max(0, -r.x), min(r.width, w - r.x)):
                    if src[col][0] != "":
                        dst[r.x + col] = src[col]

        if self._message is not None and h:
            line = frame[h - 1]
            col = 0
            for ch in self._message[:w]:
                if char_width(ch) != 1:
                    ch = "?"
                line[col] = (ch, STYLE_DEFAULT)
                col += 1
            for col in range(col, w):
                line[col] = blank

        return frame

    def update(self):
        """Composite the regions and write the cells that changed since the
        previous update()."""
        if self._suspended:
            return

        frame = self._compose()
        prev = self._prev_frame
        out = []
        last_style = None
        next_pos = None

        for y, row in enumerate(frame):
            for x, cell in enumerate(row):
                if prev is not None and prev[y][x] == cell:
                    continue
                ch, style = cell
                if next_pos != (y, x):
                    out.append(f"\x1b[{y + 1};{x + 1}H")
                if style != last_style:
                    out.append(style.sgr())
                    last_style = style
                out.append(ch or " ")
                next_pos = (y, x + (char_width(ch) if ch else 1))

        if out:
            self._write_raw("".join(out))
            self._flush()
        self._prev_frame = frame

    def _write_raw(self, s):
        try:
            sys.stdout.buffer.write(s.encode("utf-8"))
        except OSError:
            pass

    def _flush(self):
        try:
            sys.stdout.buffer.flush()
        except OSError:
            pass

    # --- Input ---

    def read_key(self, timeout=None):
        """Return the next key, or None if 'timeout' seconds pass without
        one. With timeout=None, blocks until a key arrives.

        Key.RESIZE is returned once after the terminal changes size.
        """
        if self._suspended:
            raise RuntimeError("terminal is suspended")

        key = self._parser.get()
        if key is not None:
            return key

        if self._check_resize():
            return Key.RESIZE

        if _IS_WINDOWS:
            key = self._read_key_windows(timeout)
        else:
            key = self._read_key_unix(timeout)

        # SIGWINCH may have arrived during the wait
        if key is None and self._check_resize():
            return Key.RESIZE
        return key

    def _read_key_unix(self, timeout):
        fd = sys.stdin.fileno()
        wait_ms = None if timeout is None else int(timeout * 1000)

        while True:
            if not self._poller.poll(wait_ms):
                return None

            data = os.read(fd, 1024)
            if not data:
                return None

            for ch in self._decoder.decode(data):
                self._parser.feed(ch)

            # Partial escape sequence: give the rest 25 ms to show up
            if self._parser.in_escape and not self._poller.poll(25):
                self._parser.flush()

            key = self._parser.get()
            if key is not None:
                return key

    def _read_key_windows(self, timeout):
        import msvcrt

        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            if msvcrt.kbhit():
                self._parser.feed(msvcrt.getwch())
                key = self._parser.get()
                if key is not None:
                    return key
                continue

            if self._parser.in_escape:
                self._parser.flush()
                return self._parser.get()
            # No SIGWINCH here, so poll the console size instead
            if tuple(shutil.get_terminal_size()) != (self._width, self._height):
                self._resize_pending = True
            if self._resize_pending:
                return None
            if deadline is not None and time.monotonic() >= deadline:
                return None
            time.sleep(0.01)
