"""Tests for Observable and cross-thread marshaling."""

import threading

import pytest

from mutastore import MemoryMedium, Observable, StateChange, Status, Store, set_scheduler


class TestObservable:
    def test_get_set(self):
        o = Observable(42)
        assert o.get() == 42
        o.set(100)
        assert o.get() == 100

    def test_notifies_with_previous_and_current(self):
        o = Observable("hello")
        log = []
        o.on("state", log.append)
        o.set("world")
        assert log == [StateChange("hello", "world")]

    def test_no_dedup(self):
        """Setting an equal value still notifies."""
        o = Observable(42)
        log = []
        o.on("state", log.append)
        o.set(42)
        assert log == [StateChange(42, 42)]

    def test_handlers_run_in_registration_order(self):
        o = Observable(0)
        order = []
        o.on("state", lambda c: order.append("first"))
        o.on("state", lambda c: order.append("second"))
        o.set(1)
        assert order == ["first", "second"]

    def test_dispose(self):
        o = Observable(0)
        log = []
        dispose = o.on("state", log.append)
        o.set(1)
        dispose()
        dispose()  # idempotent
        o.set(2)
        assert len(log) == 1

    def test_handler_may_dispose_itself(self):
        o = Observable(0)
        log = []
        disposers = []

        def once(change):
            log.append(change.current)
            disposers[0]()

        disposers.append(o.on("state", once))
        o.set(1)
        o.set(2)
        assert log == [1]

    def test_unknown_event(self):
        with pytest.raises(ValueError, match="Unknown observable event"):
            Observable(0).on("change", lambda c: None)

    def test_repr(self):
        assert "Observable(5)" in repr(Observable(5))


class TestScheduler:
    def test_background_writes_are_marshaled(self):
        queued = []
        set_scheduler(queued.append)
        try:
            o = Observable(0)

            t = threading.Thread(target=lambda: o.set(1))
            t.start()
            t.join()

            assert o.get() == 0
            assert len(queued) == 1
            queued[0]()
            assert o.get() == 1
        finally:
            set_scheduler(None)

    def test_main_thread_writes_stay_synchronous(self):
        queued = []
        set_scheduler(queued.append)
        try:
            o = Observable(0)
            o.set(1)
            assert o.get() == 1
            assert queued == []
        finally:
            set_scheduler(None)

    def test_store_commit_from_background_thread(self):
        queued = []
        set_scheduler(queued.append)
        try:
            medium = MemoryMedium()
            s = Store(
                state={"count": 0},
                mutations={"INC": lambda state, payload: {"count": state["count"] + 1}},
                key="k",
                medium=medium,
            )
            t = threading.Thread(target=lambda: s.commit("INC"))
            t.start()
            t.join()

            assert s.get("count") == 0
            queued[0]()
            assert s.get("count") == 1
            assert "k" in medium
        finally:
            set_scheduler(None)

    def test_background_commits_each_see_previous_write(self):
        queued = []
        set_scheduler(queued.append)
        try:
            s = Store(
                state={"count": 0, "label": "x"},
                mutations={"INC": lambda state, payload: {"count": state["count"] + 1}},
            )
            threads = [threading.Thread(target=lambda: s.commit("INC")) for _ in range(2)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

            assert s.status is Status.IDLE
            for fn in queued:
                fn()
            assert s.get() == {"count": 2, "label": "x"}
            assert s.status is Status.IDLE
        finally:
            set_scheduler(None)

    def test_background_init_reads_state_when_run(self):
        queued = []
        set_scheduler(queued.append)
        try:
            s = Store(
                state={"count": 0},
                mutations={"INC": lambda state, payload: {"count": state["count"] + 1}},
            )
            t = threading.Thread(target=lambda: s.init({"user": "ada"}))
            t.start()
            t.join()

            s.commit("INC")
            queued[0]()
            assert s.get() == {"count": 1, "user": "ada"}
            assert s.status is Status.IDLE
        finally:
            set_scheduler(None)
