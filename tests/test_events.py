from tetrocube.game import EventBus


def test_emit_passes_sender_and_payload():
    bus = EventBus()
    received = []
    bus.subscribe("ping", lambda sender, **kw: received.append((sender, kw)))
    bus.emit("ping", value=3)
    assert received == [(bus, {"value": 3})]


def test_unsubscribe_stops_delivery():
    bus = EventBus()
    received = []

    def handler(sender, **kw):
        received.append(kw)

    bus.subscribe("ping", handler)
    bus.unsubscribe("ping", handler)
    bus.emit("ping", value=1)
    assert received == []


def test_emit_without_subscribers_is_a_no_op():
    bus = EventBus()
    bus.emit("nobody", value=1)
    bus.unsubscribe("nobody", print)
