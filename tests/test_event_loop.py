# Copyright (c) 2026 wdg contributors
# SPDX-License-Identifier: ISC
#
# Event loop tests: each input transition, the idle callback and the input
# timeout configuration.

import pytest

import wdg
from conftest import FakeTerminal
from wdgterm import Key

VF = wdg.OBJ_VISIBLE | wdg.OBJ_WANT_FOCUS


def test_exit_key_ends_loop(w, term, make, log):
    make("a")
    term.keys = ["q"]
    assert w.run_event_loop("q") == wdg.ESUCCESS
    assert log == []
    assert term.keys == []


def test_exit_key_can_be_special(w, term):
    term.keys = ["x", Key.END]
    assert w.run_event_loop(Key.END) == wdg.ESUCCESS


def test_tab_switches_focus(w, term, make, log):
    make("a")
    make("b")
    term.keys = ["\t", "\t", "q"]

    w.run_event_loop("q")

    assert w.focused.name == "a"
    assert log == [("b", "get_focus"), ("b", "lost_focus"), ("a", "get_focus")]
    assert "WDG: switch focus" in term.messages


def test_tab_is_not_dispatched(w, term, make, log):
    root = make("root", wdg.OBJ_ROOT_OBJECT | wdg.OBJ_VISIBLE)
    root.handles = True
    term.keys = ["\t", "q"]

    w.run_event_loop("q")
    assert ("root", "get_msg", "\t") not in log


def test_other_keys_are_dispatched(w, term, make, log):
    make("a")
    w.switch_focus()
    del log[:]
    term.keys = ["x", Key.UP, "q"]

    w.run_event_loop("q")
    assert log == [("a", "get_msg", "x"), ("a", "get_msg", Key.UP)]


def test_resize_redraws_everything(w, term, make, log):
    make("a")
    make("b", 0)
    make("c", wdg.OBJ_VISIBLE)
    term.keys = [term.resize_to(50, 132), "q"]

    w.run_event_loop("q")

    assert (w.screen.lines, w.screen.cols) == (50, 132)
    # Every object, in traversal order, whatever its flags
    assert log == [("c", "redraw"), ("b", "redraw"), ("a", "redraw")]
    assert term.messages[-1] == "WDG: size: 50x132"


def test_redraw_may_destroy_during_resize(w, term, make, log):
    a = make("a")

    class Killer(wdg.WidgetObject):
        def redraw(self):
            if a in w.registry:
                w.destroy_object(a)

        def destroy(self):
            pass

    w.register_type(70, Killer)
    w.create_object(70, wdg.OBJ_VISIBLE)
    term.keys = [term.resize_to(30, 90), "q"]

    w.run_event_loop("q")
    assert log == [("a", "destroy")]


def test_timeout_calls_idle_callback(w, term):
    calls = []
    w.set_idle_callback(lambda: calls.append(1))
    term.keys = [None, None, "q"]

    w.run_event_loop("q")
    assert calls == [1, 1]


def test_idle_callback_can_be_replaced_and_removed(w, term, monkeypatch):
    monkeypatch.setattr(wdg.time, "sleep", lambda s: None)
    calls = []
    w.set_idle_callback(lambda: calls.append("first"))

    def replace():
        w.set_idle_callback(lambda: calls.append("second"))
        return None

    def remove():
        w.set_idle_callback(None)
        return None

    term.keys = [None, replace, None, remove, "q"]
    w.run_event_loop("q")
    # replace() and remove() read as timeouts too, after the swap
    assert calls == ["first", "second", "second"]


def test_timeout_without_callback_sleeps(w, term, monkeypatch):
    slept = []
    monkeypatch.setattr(wdg.time, "sleep", slept.append)
    term.keys = [None, None, "q"]
    updates = term.updates

    w.run_event_loop("q")
    assert slept == [wdg._IDLE_SLEEP, wdg._IDLE_SLEEP]
    assert term.updates == updates + 2


def test_idle_callback_may_create_objects(w, term, make):
    created = []
    w.set_idle_callback(lambda: created.append(make("n{}".format(len(created)))))
    term.keys = [None, None, "\t", "q"]

    w.run_event_loop("q")
    assert len(w.registry) == 2
    assert w.focused is created[1]


def test_screen_refreshed_after_keys(w, term, make):
    make("a")
    term.keys = ["x", "\t", "q"]
    updates = term.updates

    w.run_event_loop("q")
    assert term.updates == updates + 2


def test_default_timeout(w, term):
    term.keys = ["q"]
    w.run_event_loop("q")
    assert term.timeouts == [pytest.approx(wdg._INPUT_TIMEOUT / 10)]


def test_timeout_argument():
    term = FakeTerminal(keys=[None, "q"])
    w = wdg.Wdg(term=term, input_timeout=25)
    w.set_idle_callback(lambda: None)
    w.run_event_loop("q")
    assert term.timeouts == [pytest.approx(2.5)] * 2


@pytest.mark.parametrize("bad", [0, -3, 1.5, "2", True, False])
def test_bad_timeout_argument(bad):
    with pytest.raises(ValueError):
        wdg.Wdg(term=FakeTerminal(), input_timeout=bad)


def test_timeout_from_environment(monkeypatch):
    monkeypatch.setenv("WDG_INPUT_TIMEOUT", "5")
    assert wdg.Wdg(term=FakeTerminal()).input_timeout == 5


@pytest.mark.parametrize("val", ["0", "-1", "fast", ""])
def test_bad_timeout_in_environment(monkeypatch, capsys, val):
    monkeypatch.setenv("WDG_INPUT_TIMEOUT", val)
    w = wdg.Wdg(term=FakeTerminal())

    assert w.input_timeout == wdg._INPUT_TIMEOUT
    assert "WDG_INPUT_TIMEOUT" in capsys.readouterr().err


@pytest.mark.parametrize(
    "val, expected", [("1", True), ("yes", True), ("TRUE", True), ("0", False)]
)
def test_debug_from_environment(monkeypatch, val, expected):
    monkeypatch.setenv("WDG_DEBUG", val)
    assert wdg.Wdg(term=FakeTerminal()).debug is expected


def test_debug_off_by_default():
    assert wdg.Wdg(term=FakeTerminal()).debug is False
