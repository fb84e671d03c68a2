"""
Менеджер WebSocket: у каждого подключения своя очередь исходящих сообщений
и задача-писатель. Сессии кладут сообщения синхронно, порядок сохраняется.
"""
import asyncio
import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class Connection:
    def __init__(self, ws: WebSocket):
        self.ws = ws
        self.connected = True
        self.outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._writer: asyncio.Task | None = None

    def send(self, payload: dict[str, Any]) -> None:
        """Поставить сообщение в очередь. После отключения сообщения отбрасываются."""
        if not self.connected:
            return
        self.outbox.put_nowait(payload)

    def start(self) -> None:
        self._writer = asyncio.create_task(self._pump())

    async def _pump(self) -> None:
        while True:
            payload = await self.outbox.get()
            try:
                await self.ws.send_json(payload)
            except Exception as e:
                logger.warning("WS: send failed: %s", e)
                self.connected = False
                return

    async def close(self) -> None:
        """Остановить писателя; неотправленные сообщения отбрасываются."""
        self.connected = False
        if self._writer is None:
            return
        self._writer.cancel()
        try:
            await self._writer
        except asyncio.CancelledError:
            pass


class WSManager:
    def __init__(self):
        self._all: list[Connection] = []

    def connect(self, ws: WebSocket) -> Connection:
        conn = Connection(ws)
        conn.start()
        self._all.append(conn)
        return conn

    async def disconnect(self, conn: Connection) -> None:
        if conn in self._all:
            self._all.remove(conn)
        await conn.close()

    def __len__(self) -> int:
        return len(self._all)
