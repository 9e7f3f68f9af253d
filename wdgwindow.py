# Copyright (c) 2026 wdg contributors
# SPDX-License-Identifier: ISC

"""
The WINDOW object type: an empty framed box with an optional title.

Coordinates follow the usual wdg convention. A begin coordinate (x1, y1)
that is negative counts from the right/bottom edge of the screen, and an end
coordinate (x2, y2) that is zero or negative does too, so (0, 0, 0, 0) covers
the whole screen and (-20, -5, 0, 0) is the bottom-right corner. The window
is laid out again on every redraw, which keeps edge-relative windows in place
when the terminal is resized.
"""

from wdg import WidgetObject
from wdgterm import Box, Color, Style, char_width

_STYLES = {
    # (has colors, focused) -> (frame style, body style)
    (True, False): (
        Style(fg=Color.WHITE, bg=Color.BLUE),
        Style(fg=Color.WHITE, bg=Color.BLUE),
    ),
    (True, True): (
        Style(fg=Color.YELLOW, bg=Color.BLUE, bold=True),
        Style(fg=Color.WHITE, bg=Color.BLUE),
    ),
    (False, False): (Style(), Style()),
    (False, True): (Style(bold=True, standout=True), Style()),
}


def _begin(v, size):
    return v if v >= 0 else size + v


def _end(v, size):
    return v if v > 0 else size + v


def _clip(text, width):
    # Longest prefix of 'text' that fits in 'width' cells, and its width
    used = 0
    for i, ch in enumerate(text):
        cw = char_width(ch)
        if used + cw > width:
            return text[:i], used
        used += cw
    return text, used


class Window(WidgetObject):
    def __init__(self, wdg, wo_type, flags):
        super().__init__(wdg, wo_type, flags)
        self.title = ""
        self.has_focus = False
        self._region = None

    def geometry(self):
        """
        Returns (y, x, height, width) on the current screen. Height and width
        are never negative.
        """
        scr = self.wdg.screen
        y = _begin(self.y1, scr.lines)
        x = _begin(self.x1, scr.cols)
        height = _end(self.y2, scr.lines) - y
        width = _end(self.x2, scr.cols) - x
        return y, x, max(height, 0), max(width, 0)

    def set_title(self, title):
        self.title = title
        if self._region is not None:
            self.redraw()

    # Capabilities

    def get_msg(self, key):
        # Nothing inside a plain window reacts to keys
        return False

    def get_focus(self):
        self.has_focus = True
        self.redraw()

    def lost_focus(self):
        self.has_focus = False
        self.redraw()

    def resize(self):
        if self._region is not None:
            self.redraw()

    def redraw(self):
        if not self.visible:
            self._close_region()
            return

        term = self.wdg.term
        if term is None:
            return

        y, x, height, width = self.geometry()
        if self._region is None:
            self._region = term.region(height, width, y, x)
        else:
            self._region.resize(height, width)
            self._region.move(y, x)

        self._draw()

    def destroy(self):
        self._close_region()

    def _close_region(self):
        if self._region is not None:
            self._region.close()
            self._region = None

    def _draw(self):
        r = self._region
        frame, body = _STYLES[self.wdg.screen.has_colors, self.has_focus]
        r.fill(body)

        h, w = r.height, r.width
        if h < 2 or w < 2:
            # No room for a frame
            r.write(0, 0, self.title, frame)
            return

        r.write(0, 0, Box.ULCORNER + Box.HLINE * (w - 2) + Box.URCORNER, frame)
        for row in range(1, h - 1):
            r.write(row, 0, Box.VLINE, frame)
            r.write(row, w - 1, Box.VLINE, frame)
        r.write(h - 1, 0, Box.LLCORNER + Box.HLINE * (w - 2) + Box.LRCORNER, frame)

        if self.title and w > 4:
            title, width = _clip(self.title, w - 4)
            r.write(0, (w - width - 2) // 2, " {} ".format(title), frame)
