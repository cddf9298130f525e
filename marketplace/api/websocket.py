"""WebSocket endpoints for task chat and screen-share signaling."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from marketplace.api.dependencies import get_user_from_token
from marketplace.database import get_db
from marketplace.models.task import Task
from marketplace.models.user import User
from marketplace.services.authorization import authorize
from marketplace.services.chat_service import ChatService
from marketplace.services.errors import ForbiddenError, ServiceError
from marketplace.services.realtime import (
    RealtimeService,
    publish_screenshare_signal,
    screenshare_channel,
    task_channel,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/ws", tags=["websocket"])

PING_INTERVAL_SECONDS = 30

CLOSE_UNAUTHORIZED = 4001
CLOSE_FORBIDDEN = 4003
CLOSE_NOT_FOUND = 4004


async def _authenticate(
    websocket: WebSocket, db: Session, task_id: int, token: str
) -> User | None:
    """Resolve the token's user and check access to the task.

    Closes the socket with an application close code and returns None on failure.
    WebSocket clients can't send headers, so the token comes from the query string.
    """
    user = get_user_from_token(db, token)
    if user is None:
        await websocket.close(code=CLOSE_UNAUTHORIZED, reason="Invalid token")
        return None

    task = db.query(Task).filter(Task.id == task_id).first()
    if task is None:
        await websocket.close(code=CLOSE_NOT_FOUND, reason="Task not found")
        return None

    try:
        authorize(user, task)
    except ForbiddenError:
        await websocket.close(code=CLOSE_FORBIDDEN, reason="Access denied")
        return None

    return user


async def _run_session(
    websocket: WebSocket,
    channel: str,
    forward: Callable[[dict], bool],
    on_client_message: Callable[[dict], Awaitable[None]],
) -> None:
    """Pump pub/sub messages to the socket and client messages to a handler.

    Returns once any side stops (client disconnect, subscription ended).
    """
    realtime_service = RealtimeService()

    async def handle_messages() -> None:
        """Receive messages from Redis and forward to WebSocket."""
        async for message in realtime_service.subscribe(channel):
            if not forward(message):
                continue
            try:
                await websocket.send_json(message)
            except WebSocketDisconnect:
                break
            except Exception as e:
                logger.error(f"Error sending WebSocket message: {e}")
                break

    async def handle_ping() -> None:
        """Send periodic pings to keep connection alive."""
        while True:
            await asyncio.sleep(PING_INTERVAL_SECONDS)
            try:
                await websocket.send_json({"type": "ping"})
            except Exception:
                break

    async def handle_client() -> None:
        while True:
            try:
                data = await websocket.receive_json()
            except WebSocketDisconnect:
                break
            if not isinstance(data, dict) or data.get("type") == "pong":
                continue
            await on_client_message(data)

    tasks = [
        asyncio.create_task(handle_messages()),
        asyncio.create_task(handle_ping()),
        asyncio.create_task(handle_client()),
    ]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            if task.exception() is not None:
                raise task.exception()
    finally:
        await realtime_service.cleanup()


@router.websocket("/tasks/{task_id}/chat")
async def websocket_task_chat(
    websocket: WebSocket,
    task_id: int,
    db: Annotated[Session, Depends(get_db)],
    token: str = Query(...),
) -> None:
    """Live chat for a task.

    Client sends ``{"type": "message", "content": ...}``. Messages are stored
    and every participant (sender included) receives a ``message_created`` event.
    """
    user = await _authenticate(websocket, db, task_id, token)
    if user is None:
        return

    await websocket.accept()
    logger.info(f"Chat connected: user={user.id}, task={task_id}")
    chat_service = ChatService(db)

    async def on_client_message(data: dict) -> None:
        if data.get("type") != "message":
            return
        try:
            chat_service.save_message(task_id, user, data.get("content", ""))
        except ServiceError as e:
            await websocket.send_json({"type": "error", "detail": e.message})

    try:
        await _run_session(websocket, task_channel(task_id), lambda _: True, on_client_message)
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"Chat WebSocket error: {e}", exc_info=True)
    finally:
        logger.info(f"Chat disconnected: user={user.id}, task={task_id}")


@router.websocket("/tasks/{task_id}/screenshare")
async def websocket_task_screenshare(
    websocket: WebSocket,
    task_id: int,
    db: Annotated[Session, Depends(get_db)],
    token: str = Query(...),
) -> None:
    """WebRTC signaling relay for screen sharing on a task.

    Client sends ``{"type": "signal", "signal": ...}``; the other participants
    receive it with a ``from`` user id. Senders don't get their own signals back.
    """
    user = await _authenticate(websocket, db, task_id, token)
    if user is None:
        return

    await websocket.accept()
    logger.info(f"Screenshare connected: user={user.id}, task={task_id}")

    async def on_client_message(data: dict) -> None:
        if data.get("type") == "signal":
            publish_screenshare_signal(task_id, user.id, data.get("signal"))

    def from_someone_else(message: dict) -> bool:
        return message.get("from") != user.id

    try:
        await _run_session(
            websocket, screenshare_channel(task_id), from_someone_else, on_client_message
        )
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"Screenshare WebSocket error: {e}", exc_info=True)
    finally:
        logger.info(f"Screenshare disconnected: user={user.id}, task={task_id}")
