import pytest

from qctrack.services.event_hub import EventHub
from qctrack.services.events import ChangeEvent, EventEmitter
from qctrack.services.notifications import NotificationStore


class TestEventEmitter:
    def test_delivers_to_subscribers(self):
        emitter = EventEmitter("documents")
        received = []
        emitter.subscribe(received.append)

        event = emitter.emit("documents", [1, 2])

        assert received == [event]
        assert event.key == "documents.documents"
        assert event.data == [1, 2]

    def test_unsubscribe_stops_delivery(self):
        emitter = EventEmitter("media")
        received = []
        unsubscribe = emitter.subscribe(received.append)

        unsubscribe()
        unsubscribe()  # second call is a no-op
        emitter.emit("photos")

        assert received == []
        assert emitter.listener_count == 0

    def test_failing_listener_does_not_block_others(self):
        emitter = EventEmitter("notifications")
        received = []

        def broken(event: ChangeEvent) -> None:
            raise RuntimeError("boom")

        emitter.subscribe(broken)
        emitter.subscribe(received.append)
        emitter.emit("unread_count", 3)

        assert [e.data for e in received] == [3]

    def test_listener_may_unsubscribe_while_notified(self):
        emitter = EventEmitter("schedule")
        calls = []
        holder = {}

        def once(event):
            calls.append(event.name)
            holder["unsubscribe"]()

        holder["unsubscribe"] = emitter.subscribe(once)
        emitter.emit("inspections")
        emitter.emit("inspections")

        assert calls == ["inspections"]

    def test_store_mutation_survives_failing_listener(self):
        store = NotificationStore()
        delivered = []

        def broken(event: ChangeEvent) -> None:
            raise RuntimeError("listener down")

        store.subscribe(broken)
        store.subscribe(delivered.append)

        store.add(title="Weld rejected", message="Joint W-12", type="system", severity="warning")

        assert len(store.notifications) == 1
        assert [e.name for e in delivered] == ["notifications", "unread_count"]


class FakeSocket:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent = []

    async def send_json(self, data) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)


class TestEventHub:
    @pytest.mark.asyncio
    async def test_dead_socket_does_not_block_broadcast(self):
        hub = EventHub()
        dead, alive = FakeSocket(fail=True), FakeSocket()
        await hub.connect("alice", dead)
        await hub.connect("bob", alive)

        await hub.broadcast("documents.documents", {"count": 2})

        assert alive.sent == [{"event": "documents.documents", "data": {"count": 2}}]

    @pytest.mark.asyncio
    async def test_send_to_user_targets_only_that_user(self):
        hub = EventHub()
        alice, bob = FakeSocket(), FakeSocket()
        await hub.connect("alice", alice)
        await hub.connect("bob", bob)

        await hub.send_to_user("alice", "notifications.unread_count", 1)

        assert len(alice.sent) == 1
        assert bob.sent == []
