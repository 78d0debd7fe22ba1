"""Display fan-out."""

import asyncio

from apps.display.broadcast import Broadcaster, TICKET_CALLED
from apps.display.routes import _drain_client


def test_publish_reaches_every_listener():
    broadcaster = Broadcaster()
    first, second = [], []
    broadcaster.subscribe(lambda t, p: first.append((t, p)))
    broadcaster.subscribe(lambda t, p: second.append((t, p)))

    delivered = broadcaster.publish(TICKET_CALLED, {"code": "EN1"})

    assert delivered == 2
    assert first == second == [(TICKET_CALLED, {"code": "EN1"})]


def test_unsubscribed_listener_misses_events():
    broadcaster = Broadcaster()
    received = []
    token = broadcaster.subscribe(lambda t, p: received.append(p))
    broadcaster.unsubscribe(token)
    broadcaster.unsubscribe(token)

    assert broadcaster.publish(TICKET_CALLED, {"code": "EN1"}) == 0
    assert received == []


def test_failing_listener_is_dropped():
    broadcaster = Broadcaster()
    received = []

    def broken(topic, payload):
        raise RuntimeError("socket closed")

    broadcaster.subscribe(broken)
    broadcaster.subscribe(lambda t, p: received.append(p))

    assert broadcaster.publish(TICKET_CALLED, {"code": "MP3"}) == 1
    assert len(broadcaster) == 1
    assert received == [{"code": "MP3"}]


def test_queue_subscriber_receives_from_other_threads():
    broadcaster = Broadcaster()

    async def scenario():
        queue = asyncio.Queue()
        broadcaster.subscribe_queue(asyncio.get_running_loop(), queue)
        await asyncio.to_thread(broadcaster.publish, TICKET_CALLED, {"code": "EP2"})
        return await asyncio.wait_for(queue.get(), timeout=5)

    message = asyncio.run(scenario())
    assert message == {"event": TICKET_CALLED, "data": {"code": "EP2"}}


class AbruptSocket:
    async def receive_text(self):
        raise RuntimeError("Unexpected ASGI message 'websocket.close'")


def test_abnormal_display_close_ends_the_reader(caplog):
    asyncio.run(_drain_client(AbruptSocket()))
    assert "closed abnormally" in caplog.text
