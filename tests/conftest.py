# Copyright (c) 2026 wdg contributors
# SPDX-License-Identifier: ISC
#
# Shared fixtures for the wdg pytest suite: a scripted stand-in for the
# terminal and a widget type that records every capability call.

import os
import sys

import pytest

# Ensure the wdg modules are importable from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import wdg  # noqa: E402
from wdgterm import Key, Region  # noqa: E402

# Type tag of Probe objects
PROBE = 50


class FakeTerminal:
    """Implements the terminal interface used by wdg without a tty.

    'keys' is the scripted input. Each entry is returned by one read_key()
    call; None stands for a timeout, and a callable is called and its result
    returned. Reading past the end of the script fails the test.
    """

    def __init__(self, keys=(), height=24, width=80, colors=True):
        self.keys = list(keys)
        self.height = height
        self.width = width
        self.colors = colors
        self.timeouts = []
        self.messages = []
        self.calls = []
        self.updates = 0
        self.cursor_visible = True
        self.closed = False
        self._regions = []

    def read_key(self, timeout=None):
        self.timeouts.append(timeout)
        if not self.keys:
            pytest.fail("event loop read past the end of the scripted input")
        key = self.keys.pop(0)
        return key() if callable(key) else key

    def resize_to(self, height, width):
        """Returns a script entry that resizes the screen when read."""

        def resize():
            self.height = height
            self.width = width
            return Key.RESIZE

        return resize

    def has_colors(self):
        return self.colors

    def hide_cursor(self):
        self.calls.append("hide_cursor")
        self.cursor_visible = False

    def show_cursor(self):
        self.calls.append("show_cursor")
        self.cursor_visible = True

    def clear(self):
        self.calls.append("clear")

    def update(self):
        self.updates += 1

    def message(self, text):
        self.messages.append(text)

    def suspend(self):
        self.calls.append("suspend")

    def resume(self):
        self.calls.append("resume")

    def close(self):
        self.calls.append("close")
        self.closed = True

    def region(self, height, width, y=0, x=0):
        r = Region(self, height, width, y, x)
        self._regions.append(r)
        return r

    def _remove_region(self, region):
        self._regions.remove(region)


class Probe(wdg.WidgetObject):
    """Widget that logs (name, capability[, key]) tuples to a shared list.

    get_msg() returns 'handles', which is False by default.
    """

    def __init__(self, w, wo_type, flags, log):
        super().__init__(w, wo_type, flags)
        self.log = log
        self.name = None
        self.handles = False

    def get_msg(self, key):
        self.log.append((self.name, "get_msg", key))
        return self.handles

    def get_focus(self):
        self.log.append((self.name, "get_focus"))

    def lost_focus(self):
        self.log.append((self.name, "lost_focus"))

    def resize(self):
        self.log.append((self.name, "resize"))

    def redraw(self):
        self.log.append((self.name, "redraw"))

    def destroy(self):
        self.log.append((self.name, "destroy"))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep the user's WDG_* and color settings out of the tests."""
    for var in ("WDG_INPUT_TIMEOUT", "WDG_DEBUG", "NO_COLOR"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def term():
    return FakeTerminal()


@pytest.fixture
def log():
    """Capability calls made on Probe objects, in order."""
    return []


@pytest.fixture
def w(term, log):
    """An initialized Wdg on a FakeTerminal, with the PROBE type registered
    and debug diagnostics on."""
    ctx = wdg.Wdg(term=term, debug=True)
    ctx.register_type(PROBE, lambda w_, wo_type, flags: Probe(w_, wo_type, flags, log))
    ctx.initialize()
    yield ctx
    ctx.cleanup()


@pytest.fixture
def make(w):
    """make(name, flags) creates a named Probe object."""

    def make_probe(name, flags=wdg.OBJ_VISIBLE | wdg.OBJ_WANT_FOCUS):
        wo = w.create_object(PROBE, flags)
        wo.name = name
        return wo

    return make_probe


def names(objs):
    return [wo.name for wo in objs]
