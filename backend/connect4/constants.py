"""Константы игры и протокола."""
import re
from typing import Literal

Player = Literal["player-one", "player-two"]
ClientState = Literal["unnamed", "idle", "challenged", "challenging", "playing"]

PLAYER_ONE: Player = "player-one"
PLAYER_TWO: Player = "player-two"

GRID_ROWS = 6
GRID_COLUMNS = 7
WIN_LENGTH = 4

UNNAMED: ClientState = "unnamed"
IDLE: ClientState = "idle"
CHALLENGED: ClientState = "challenged"
CHALLENGING: ClientState = "challenging"
PLAYING: ClientState = "playing"

CLIENT_STATES: tuple[ClientState, ...] = (UNNAMED, IDLE, CHALLENGED, CHALLENGING, PLAYING)

NICKNAME_RE = re.compile(r"^[\w-]{1,20}$", re.ASCII)
UNNAMED_NICKNAME = "[unnamed]"


def to_player(value: object) -> Player | None:
    """Строка из сообщения -> идентификатор игрока или None."""
    if value == PLAYER_ONE:
        return PLAYER_ONE
    if value == PLAYER_TWO:
        return PLAYER_TWO
    return None


def to_client_state(value: object) -> ClientState | None:
    """Проверка тега состояния. Любое другое значение — None, без подстановок."""
    for state in CLIENT_STATES:
        if value == state:
            return state
    return None
