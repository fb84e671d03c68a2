"""
Обработка WebSocket: разбор команд и передача их сессии.
При отключении — quit(): освобождение ника и уведомление соперника.
"""
import logging

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect

from .pairing import Lobby
from .protocol import ProtocolError, decode_command
from .session import Session
from .ws_manager import WSManager

logger = logging.getLogger(__name__)


def handle_ws_message(session: Session, raw: str) -> None:
    """Одно сообщение от клиента. Битые кадры и неизвестные команды игнорируются."""
    try:
        command, param = decode_command(raw)
    except ProtocolError as e:
        logger.warning("WS: bad message from %s: %s", session.nickname, e)
        return
    logger.debug("WS: msg from %s cmd=%s", session.nickname, command.value)
    session.dispatch(command, param)


async def ws_session_loop(ws: WebSocket, lobby: Lobby, manager: WSManager) -> None:
    await ws.accept()
    conn = manager.connect(ws)
    session = lobby.connect(conn.send)
    logger.info("WS: client connected session=%s", session.id)
    try:
        while True:
            raw = await ws.receive_text()
            handle_ws_message(session, raw)
    except WebSocketDisconnect as e:
        logger.info("WS: client disconnected code=%s session=%s", e.code, session.id)
    except Exception as e:
        logger.exception("WS: error session=%s: %s", session.id, e)
    finally:
        conn.connected = False
        try:
            session.quit()
        finally:
            await manager.disconnect(conn)
            logger.info("WS: disconnected session=%s", session.id)
