"""
Протокол WebSocket.
Входящие: {"cmd": <имя>, "param": <значение>}.
Исходящие: объект с полем state (текущее состояние сессии) и данными.
"""
import json
from enum import Enum
from typing import Any, TypedDict

from .constants import ClientState, Player


class Command(str, Enum):
    NICK = "nick"
    CHALLENGE = "challenge"
    ACCEPT = "accept"
    DECLINE = "decline"
    CANCEL = "cancel"
    DROP = "drop"
    LEAVE = "leave"


class ProtocolError(ValueError):
    pass


class UnknownCommand(ProtocolError):
    pass


class Notification(TypedDict, total=False):
    state: ClientState
    message: str
    nickname: str
    opponent: str
    player: Player
    drop: bool
    column: int


# Команды с параметром и его допустимые типы; у остальных параметр игнорируется.
PARAM_TYPES: dict[Command, tuple[type, ...]] = {
    Command.NICK: (str,),
    Command.CHALLENGE: (str,),
    Command.DROP: (int, float),
}


def decode_command(raw: str) -> tuple[Command, Any]:
    """
    Разобрать входящий кадр. ProtocolError если кадр не JSON-объект,
    команда неизвестна или параметр не того типа.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ProtocolError("message is not an object")
    name = data.get("cmd")
    try:
        command = Command(name)
    except ValueError:
        raise UnknownCommand(f"unknown command {name!r}") from None

    if command not in PARAM_TYPES:
        return command, None
    param = data.get("param")
    if isinstance(param, bool) or not isinstance(param, PARAM_TYPES[command]):
        raise ProtocolError(f"bad param for {command.value}: {param!r}")
    if isinstance(param, float) and param.is_integer():
        param = int(param)
    return command, param


def encode_command(command: Command, param: Any = None) -> dict[str, Any]:
    """Объект команды для отправки серверу (клиентская сторона)."""
    data: dict[str, Any] = {"cmd": command.value}
    if param is not None:
        data["param"] = param
    return data


def notification(state: ClientState, **fields: Any) -> Notification:
    """Исходящее сообщение: поля плюс текущее состояние отправителя."""
    return Notification(**fields, state=state)
