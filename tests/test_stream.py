"""Tests for EventStream — the store's notification channels."""

from mutastore import EventStream, Store


def _store():
    return Store(
        state={"count": 0},
        mutations={
            "INC": lambda state, p: {"count": state["count"] + 1},
            "RESET": lambda state, p: {"count": 0},
        },
    )


class TestEmitSubscribe:
    def test_subscribe_receives_emitted_values(self):
        stream = EventStream()
        received = []
        stream.subscribe(received.append)
        stream.emit(1)
        stream.emit(2)
        assert received == [1, 2]

    def test_subscription_order(self):
        stream = EventStream()
        order = []
        stream.subscribe(lambda v: order.append("a"))
        stream.subscribe(lambda v: order.append("b"))
        stream.emit("x")
        assert order == ["a", "b"]

    def test_unsubscribe_idempotent(self):
        stream = EventStream()
        received = []
        unsub = stream.subscribe(received.append)
        stream.emit(1)
        unsub()
        unsub()
        stream.emit(2)
        assert received == [1]
        assert len(stream) == 0

    def test_unsubscribe_during_emit(self):
        stream = EventStream()
        received = []
        disposers = []
        disposers.append(stream.subscribe(lambda v: disposers[0]()))
        stream.subscribe(received.append)
        stream.emit(1)
        assert received == [1]
        assert len(stream) == 1


class TestOnce:
    def test_only_next_value(self):
        stream = EventStream()
        received = []
        stream.once(received.append)
        stream.emit(1)
        stream.emit(2)
        assert received == [1]

    def test_cancel_before_emit(self):
        stream = EventStream()
        received = []
        cancel = stream.once(received.append)
        cancel()
        stream.emit(1)
        assert received == []

    def test_next_mutation_name(self):
        s = _store()
        names = []
        s.mutation_events.once(names.append)
        s.commit("INC")
        s.commit("RESET")
        assert names == ["INC"]


class TestStoreChannels:
    def test_state_changes_carry_full_state(self):
        s = _store()
        states = []
        s.state_changes.subscribe(states.append)
        s.commit("INC")
        s.commit("INC")
        assert states == [{"count": 1}, {"count": 2}]

    def test_mutation_events_carry_names(self):
        s = _store()
        names = []
        s.mutation_events.subscribe(names.append)
        s.commit("INC")
        s.commit("RESET")
        s.commit("missing")
        assert names == ["INC", "RESET"]


class TestDispose:
    def test_dispose_stops_emission(self):
        stream = EventStream()
        received = []
        stream.subscribe(received.append)
        stream.dispose()
        stream.emit(1)
        assert received == []
        assert stream.disposed

    def test_subscribe_after_dispose_is_inert(self):
        stream = EventStream()
        stream.dispose()
        unsub = stream.subscribe(lambda v: None)
        unsub()
        assert len(stream) == 0

    def test_repr(self):
        stream = EventStream("stateChange")
        stream.subscribe(lambda v: None)
        assert repr(stream) == "EventStream('stateChange', 1 subscribers)"
