#!/usr/bin/env python3

# Copyright (c) 2026 wdg contributors
# SPDX-License-Identifier: ISC

"""
Overview
========

wdg is the object-and-event core of a small terminal widget toolkit. It owns
the set of live widget objects, decides which of them has the keyboard focus,
and runs the loop that reads keys and hands them out.

Everything lives in a Wdg instance (the toolkit context). A typical program
looks like this:

  import wdg

  def main(w):
      win = w.create_object(wdg.WINDOW, wdg.OBJ_VISIBLE | wdg.OBJ_WANT_FOCUS)
      w.resize_object(win, 0, 0, 40, 10)
      w.redraw_object(win)
      w.run_event_loop("q")

  wdg.run(main)


Objects
=======

Each object has a type tag, a set of OBJ_* flags, a bounding rectangle
(x1, y1, x2, y2) and a capability table: the methods get_msg(), get_focus(),
lost_focus(), resize(), redraw() and destroy(). The core never looks inside an
object beyond that. Widget types are WidgetObject subclasses registered under
a type tag; WINDOW is built in and more can be added with register_type().

Objects are kept in creation order, newest first. That order is used both for
redrawing after a resize and for cycling the focus.


Input
=====

run_event_loop() reads one key at a time, waiting at most the configured
input timeout:

  Tab        : move the focus to the next visible object that wants it
  (resize)   : requery the screen size and redraw every object
  (timeout)  : call the idle callback, if one is set
  exit key   : return from the loop

Every other key is offered to the root object first (an object created with
OBJ_ROOT_OBJECT, typically a menu bar), and to the focused object if the root
didn't handle it. get_msg() returns True to mark a key as handled.


Environment
===========

WDG_INPUT_TIMEOUT:
  Input timeout in tenths of a second (default 1)

WDG_DEBUG:
  If set to 1/y/yes/true, diagnostic messages (focus switches, unhandled keys,
  screen size changes) are shown on the bottom line of the screen
"""

import os
import sys
import time

import wdgterm
from wdgterm import Key

#
# Configuration variables
#

# How long a key read waits before the loop goes idle, in tenths of a second
# (like curses' halfdelay())
_INPUT_TIMEOUT = 1

# How long to sleep on an idle timeout when there's no idle callback, in
# seconds
_IDLE_SLEEP = 0.001

# Key that moves the focus
KEY_TAB = "\t"

#
# Public constants
#

# Return status of run_event_loop()
ESUCCESS = 0

# Error code carried by WdgError for configuration errors
EFATAL = 255

# Object flags
OBJ_WANT_FOCUS = 1 << 0
OBJ_ROOT_OBJECT = 1 << 1
OBJ_VISIBLE = 1 << 2
# First bit free for widget-specific flags
OBJ_USER = 1 << 8

# Object types
WINDOW = 1

# Screen flags
SCR_HAS_COLORS = 1 << 0
SCR_INITIALIZED = 1 << 1

# Capabilities that must be present when the core invokes them. get_msg() is
# optional; an object without it never handles keys.
_MANDATORY_CAPABILITIES = ("get_focus", "lost_focus", "resize", "redraw", "destroy")


class WdgError(Exception):
    """
    Raised for configuration errors, e.g. creating an object of an unknown
    type. 'code' holds the error code (EFATAL).
    """

    def __init__(self, msg, code=EFATAL):
        super().__init__(msg)
        self.code = code


def _bug(msg):
    # Widget implementation defects. Raised explicitly instead of with
    # 'assert' so that they aren't compiled away by -O.
    raise AssertionError("BUG: " + msg)


#
# Objects
#


class WidgetObject:
    """
    Base class of all widget objects. Subclasses implement the capabilities
    as methods; the core calls them as:

    get_msg(key):
      Handle a key. Return True if it was handled.

    get_focus(), lost_focus():
      The object gained/lost the keyboard focus.

    resize():
      The bounding rectangle (x1, y1, x2, y2) was changed.

    redraw():
      Draw the object.

    destroy():
      Release widget-private resources. Called once, right before the object
      is dropped from the registry.

    A capability left as None is reported as a bug when the core needs it.
    """

    get_msg = None
    get_focus = None
    lost_focus = None
    resize = None
    redraw = None
    destroy = None

    def __init__(self, wdg, wo_type, flags):
        self.wdg = wdg
        self.type = wo_type
        self.flags = flags
        self.x1 = self.y1 = self.x2 = self.y2 = 0
        # Assigned by the registry
        self.id = None

    @property
    def visible(self):
        return bool(self.flags & OBJ_VISIBLE)

    @property
    def focusable(self):
        """True if the object can currently take the focus."""
        return (
            self.flags & (OBJ_WANT_FOCUS | OBJ_VISIBLE)
            == OBJ_WANT_FOCUS | OBJ_VISIBLE
        )

    def __repr__(self):
        return "<{} id={} type={} flags={:#x} rect=({}, {}, {}, {})>".format(
            type(self).__name__,
            self.id,
            self.type,
            self.flags,
            self.x1,
            self.y1,
            self.x2,
            self.y2,
        )


def _invoke(wo, capability, *args):
    # Calls a mandatory capability of 'wo'
    fn = getattr(wo, capability)
    if fn is None:
        _bug(f"{wo!r} has no {capability}() capability")
    return fn(*args)


def _window(wdg, wo_type, flags):
    # Imported here, as wdgwindow imports this module
    from wdgwindow import Window

    return Window(wdg, wo_type, flags)


# Type tag -> constructor. A constructor is called as
# constructor(wdg, type, flags) and returns a populated WidgetObject.
_CONSTRUCTORS = {
    WINDOW: _window,
}


class Registry:
    """
    The live objects. Each object gets an id that is never reused, so a
    stale id fails lookup instead of finding a different object. The order
    list holds the ids newest first (the head) and is treated as circular by
    the focus chain.
    """

    def __init__(self):
        self._objs = {}
        self._order = []
        self._last_id = 0

    def insert(self, wo):
        self._last_id += 1
        wo.id = self._last_id
        self._objs[wo.id] = wo
        self._order.insert(0, wo.id)

    def remove(self, wo):
        del self._objs[wo.id]
        self._order.remove(wo.id)

    def get(self, obj_id):
        """Returns the live object with id 'obj_id', or None."""
        return self._objs.get(obj_id)

    def __contains__(self, wo):
        return wo.id is not None and self._objs.get(wo.id) is wo

    def __len__(self):
        return len(self._order)

    def __iter__(self):
        # Over a copy, so that callbacks may create and destroy objects
        # during traversal
        return iter([self._objs[i] for i in self._order])

    def backward(self):
        return iter([self._objs[i] for i in reversed(self._order)])

    def following(self, wo):
        """
        Yields every object once, starting with the one after 'wo' in the
        circular order and ending with 'wo' itself.
        """
        n = len(self._order)
        start = self._order.index(wo.id)
        for step in range(1, n + 1):
            yield self._objs[self._order[(start + step) % n]]


class FocusChain:
    """
    Tracks the focused object. The focus is kept as an id, so an object that
    is gone can never be handed a key.
    """

    def __init__(self, registry):
        self._registry = registry
        self._focused_id = None

    @property
    def focused(self):
        if self._focused_id is None:
            return None
        return self._registry.get(self._focused_id)

    def forget(self, wo):
        """Drops the focus if 'wo' holds it."""
        if self._focused_id == wo.id:
            self._focused_id = None

    def switch(self):
        """
        Moves the focus to the next focusable object and returns it. Returns
        None if there is nothing to focus.

        With nothing focused, the scan starts at the head. Otherwise the
        focused object loses the focus and the scan starts right after it,
        going around at most once (the object itself comes last).
        """
        cur = self.focused

        if cur is None:
            candidates = iter(self._registry)
        else:
            _invoke(cur, "lost_focus")
            self._focused_id = None
            # lost_focus() may have destroyed it
            if cur in self._registry:
                candidates = self._registry.following(cur)
            else:
                candidates = iter(self._registry)

        for wo in candidates:
            if wo.focusable:
                self._focused_id = wo.id
                _invoke(wo, "get_focus")
                return wo

        return None


#
# Screen
#


class Screen:
    """
    Terminal geometry and capability flags (SCR_*), kept up to date by the
    toolkit context.
    """

    def __init__(self):
        self.lines = 0
        self.cols = 0
        self.flags = 0

    @property
    def initialized(self):
        return bool(self.flags & SCR_INITIALIZED)

    @property
    def has_colors(self):
        return bool(self.flags & SCR_HAS_COLORS)

    def initialize(self, term):
        if term.has_colors():
            self.flags |= SCR_HAS_COLORS
        term.hide_cursor()
        self.on_resize(term)
        self.flags |= SCR_INITIALIZED
        term.clear()
        term.update()

    def cleanup(self, term):
        if not self.initialized:
            return
        term.show_cursor()
        term.clear()
        self.flags &= ~SCR_INITIALIZED

    def on_resize(self, term):
        self.lines = term.height
        self.cols = term.width


#
# Toolkit context
#


class Wdg:
    """
    One toolkit instance: the registry, the focus and root object, the idle
    callback, the screen state and the terminal. Independent instances don't
    share anything.
    """

    def __init__(self, term=None, input_timeout=None, debug=None):
        """
        term:
          Terminal to use. Any object with the wdgterm.Terminal interface
          works. If None, a wdgterm.Terminal is opened by initialize() and
          closed by cleanup().

        input_timeout:
          Key read timeout in tenths of a second. Defaults to
          WDG_INPUT_TIMEOUT from the environment, or _INPUT_TIMEOUT.

        debug:
          If True, report diagnostics on the screen. Defaults to WDG_DEBUG
          from the environment.
        """
        self.term = term
        self._owns_term = term is None

        self.screen = Screen()
        self.registry = Registry()
        self._focus = FocusChain(self.registry)
        self._root_id = None
        self._idle_callback = None
        self._constructors = dict(_CONSTRUCTORS)

        if input_timeout is None:
            input_timeout = self._env_timeout()
        elif (
            isinstance(input_timeout, bool)
            or not isinstance(input_timeout, int)
            or input_timeout <= 0
        ):
            raise ValueError(
                f"input_timeout must be a positive integer, not {input_timeout!r}"
            )
        self.input_timeout = input_timeout

        if debug is None:
            debug = os.environ.get("WDG_DEBUG", "").lower() in ("1", "y", "yes", "true")
        self.debug = debug

    def _env_timeout(self):
        val = os.environ.get("WDG_INPUT_TIMEOUT")
        if val is None:
            return _INPUT_TIMEOUT
        try:
            timeout = int(val)
        except ValueError:
            timeout = 0
        if timeout <= 0:
            self._warn(
                f"ignoring WDG_INPUT_TIMEOUT={val!r}, expected a positive "
                f"number of tenths of a second; using {_INPUT_TIMEOUT}"
            )
            return _INPUT_TIMEOUT
        return timeout

    #
    # Setup and teardown
    #

    def initialize(self):
        """
        Takes over the terminal and records its size and capabilities. Does
        nothing if already initialized.
        """
        if self.screen.initialized:
            return
        if self.term is None:
            self.term = wdgterm.Terminal()
        self.screen.initialize(self.term)

    def cleanup(self):
        """
        Gives the terminal back. Safe to call more than once, and before
        initialize().
        """
        if not self.screen.initialized:
            return
        self.screen.cleanup(self.term)
        if self._owns_term:
            self.term.close()
            self.term = None

    #
    # Objects
    #

    def register_type(self, wo_type, constructor):
        """
        Makes objects of type 'wo_type' creatable in this context.
        'constructor' is called as constructor(wdg, type, flags) and must
        return a WidgetObject; a WidgetObject subclass works directly.
        """
        self._constructors[wo_type] = constructor

    def create_object(self, wo_type, flags):
        """
        Creates an object and returns it. Raises WdgError for an unknown
        type, in which case nothing is registered.

        If 'flags' includes OBJ_ROOT_OBJECT, the object becomes the root
        object, replacing any previous one (with a warning).
        """
        constructor = self._constructors.get(wo_type)
        if constructor is None:
            raise WdgError(f"unknown object type {wo_type!r}")

        wo = constructor(self, wo_type, flags)
        self.registry.insert(wo)

        if flags & OBJ_ROOT_OBJECT:
            old_root = self.root
            if old_root is not None:
                self._warn(f"{wo!r} replaces {old_root!r} as the root object")
            self._root_id = wo.id

        return wo

    def destroy_object(self, wo):
        """
        Destroys 'wo'. Its root designation and focus are dropped before its
        destroy() capability runs.
        """
        if wo not in self.registry:
            _bug(f"destroying {wo!r}, which is not a live object")

        if self._root_id == wo.id:
            self._root_id = None
        self._focus.forget(wo)

        _invoke(wo, "destroy")
        self.registry.remove(wo)

    def resize_object(self, wo, x1, y1, x2, y2):
        wo.x1 = x1
        wo.y1 = y1
        wo.x2 = x2
        wo.y2 = y2
        _invoke(wo, "resize")

    def redraw_object(self, wo):
        _invoke(wo, "redraw")

    def get_type(self, wo):
        return wo.type

    def objects(self, reverse=False):
        """
        Returns an iterator over the live objects, newest first (oldest first
        if 'reverse' is True).
        """
        return self.registry.backward() if reverse else iter(self.registry)

    @property
    def root(self):
        """The root object, or None."""
        if self._root_id is None:
            return None
        return self.registry.get(self._root_id)

    @property
    def focused(self):
        """The focused object, or None."""
        return self._focus.focused

    #
    # Input
    #

    def set_idle_callback(self, callback):
        """
        Sets the function called (without arguments) when no key arrives
        within the input timeout. None removes it.
        """
        self._idle_callback = callback

    def switch_focus(self):
        self._diag("switch focus")
        return self._focus.switch()

    def dispatch(self, key):
        """
        Offers 'key' to the root object, then to the focused object. Returns
        True if one of them handled it.
        """
        root = self.root
        if root is not None and root.get_msg is not None and root.get_msg(key):
            return True

        focused = self._focus.focused
        if (
            focused is not None
            and focused is not root
            and focused.get_msg is not None
            and focused.get_msg(key)
        ):
            return True

        self._diag(f"NOT HANDLED: {key!r}")
        return False

    def run_event_loop(self, exit_key):
        """
        Reads and handles keys until 'exit_key' is read. Returns ESUCCESS.
        """
        timeout = self.input_timeout / 10

        while True:
            key = self.term.read_key(timeout)

            if key is None:
                if self._idle_callback is not None:
                    self._idle_callback()
                else:
                    time.sleep(_IDLE_SLEEP)
                    self.term.update()
                continue

            if key == KEY_TAB:
                self.switch_focus()

            elif key == Key.RESIZE:
                self._resize()

            elif key == exit_key:
                return ESUCCESS

            else:
                self.dispatch(key)

            self.term.update()

    def _resize(self):
        # The terminal changed size. The objects are redrawn; laying them out
        # again is up to the application (e.g. from a root object).
        self.screen.on_resize(self.term)

        for wo in self.registry:
            # An earlier redraw() may have destroyed it
            if wo in self.registry:
                _invoke(wo, "redraw")

        self._diag(f"size: {self.screen.lines}x{self.screen.cols}")

    #
    # Diagnostics
    #

    def _diag(self, msg):
        # Diagnostic messages go to the bottom line of the screen, if enabled
        if self.debug and self.term is not None:
            self.term.message("WDG: " + msg)

    def _warn(self, *args):
        # Warnings go to stderr, temporarily leaving terminal mode so that
        # they don't get lost
        active = self.term is not None and self.screen.initialized
        if active:
            self.term.suspend()
        print("wdg warning: ", end="", file=sys.stderr)
        print(*args, file=sys.stderr)
        if active:
            self.term.resume()


def run(fn, **kwargs):
    """
    Creates a Wdg with 'kwargs', initializes it, and returns fn(wdg). The
    terminal is always given back, also on Ctrl-C (which makes run() return
    None).
    """
    w = Wdg(**kwargs)
    try:
        w.initialize()
        return fn(w)
    except KeyboardInterrupt:
        return None
    finally:
        w.cleanup()
