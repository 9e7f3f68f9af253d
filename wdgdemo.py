#!/usr/bin/env python3

# Copyright (c) 2026 wdg contributors
# SPDX-License-Identifier: ISC

"""
Interactive demo of the wdg core.

The top line is the root object. It sees every key first and handles:

  n : Open a new window
  d : Close the focused window
  v : Hide/show the focused window (hidden windows are skipped by Tab)

Tab moves the focus between windows. q (or the key given with --exit-key)
quits. The clock in the top line is updated from the idle callback.
"""

import argparse
import time

import wdg
from wdgwindow import Window

# Type tag of the top bar
_BAR = 100


class _Bar(Window):
    # Root object: a one-line window at the top holding the global keys

    def __init__(self, w, wo_type, flags):
        super().__init__(w, wo_type, flags)
        self.opened = 0

    def get_msg(self, key):
        w = self.wdg

        if key == "n":
            self.opened += 1
            n = self.opened
            win = w.create_object(wdg.WINDOW, wdg.OBJ_VISIBLE | wdg.OBJ_WANT_FOCUS)
            win.title = f"Window {n}"
            offset = 2 * (n % 8)
            w.resize_object(win, 2 + offset, 2 + offset, 32 + offset, 10 + offset)
            w.redraw_object(win)
            return True

        focused = w.focused
        if focused is None:
            return False

        if key == "d":
            w.destroy_object(focused)
            return True

        if key == "v":
            focused.flags ^= wdg.OBJ_VISIBLE
            w.redraw_object(focused)
            return True

        return False

    def tick(self):
        self.set_title(time.strftime("wdg demo  %H:%M:%S  [n]ew [d]elete [v]isible"))
        self.wdg.term.update()


def main():
    parser = argparse.ArgumentParser(
        formatter_class=argparse.RawDescriptionHelpFormatter, description=__doc__
    )

    parser.add_argument(
        "--exit-key", default="q", help="Key that quits the demo (default: q)"
    )

    parser.add_argument(
        "--timeout",
        type=int,
        help="Input timeout in tenths of a second (default: $WDG_INPUT_TIMEOUT or 1)",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="Show diagnostic messages on the bottom line",
    )

    args = parser.parse_args()

    if args.timeout is not None and args.timeout <= 0:
        parser.error("--timeout must be positive")

    res = wdg.run(
        lambda w: _demo(w, args.exit_key),
        input_timeout=args.timeout,
        debug=args.debug,
    )
    # None after Ctrl-C
    if res is not None:
        print(res)


def _demo(w, exit_key):
    w.register_type(_BAR, _Bar)

    bar = w.create_object(_BAR, wdg.OBJ_ROOT_OBJECT | wdg.OBJ_VISIBLE)
    w.resize_object(bar, 0, 0, 0, 1)
    w.redraw_object(bar)
    bar.tick()

    w.set_idle_callback(bar.tick)
    w.run_event_loop(exit_key)

    n = len(w.registry) - 1
    for obj in list(w.objects()):
        w.destroy_object(obj)

    return f"{n} window(s) were open at exit"


if __name__ == "__main__":
    main()
