import asyncio
import logging
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

router = APIRouter(tags=["display"])


@router.websocket("/ws/display")
async def display_feed(websocket: WebSocket):
    """Push every ticket call to a public display"""
    broadcaster = websocket.app.state.queue_context.broadcaster
    queue: asyncio.Queue = asyncio.Queue()
    # Subscribe before accepting so no call made after the handshake is missed
    token = broadcaster.subscribe_queue(asyncio.get_running_loop(), queue)
    receiver = None
    try:
        await websocket.accept()
        receiver = asyncio.create_task(_drain_client(websocket))
        while True:
            getter = asyncio.create_task(queue.get())
            done, _ = await asyncio.wait({getter, receiver}, return_when=asyncio.FIRST_COMPLETED)
            if receiver in done:
                getter.cancel()
                break
            await websocket.send_json(getter.result())
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.unsubscribe(token)
        if receiver is not None:
            receiver.cancel()


async def _drain_client(websocket: WebSocket) -> None:
    """Consume client frames until it disconnects"""
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Display disconnected")
    except Exception as e:
        logger.warning(f"Display connection closed abnormally: {e}")
