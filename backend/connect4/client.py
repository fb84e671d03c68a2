"""
Клиентское зеркало сессии: локальная копия партии для мгновенного
отображения своих ходов. Транспорт не важен: на вход — уведомления
сервера (dict), на выход — объекты команд для отправки.
"""
import logging
from typing import Any

from .constants import IDLE, PLAYER_ONE, PLAYING, UNNAMED, ClientState, Player, to_client_state, to_player
from .game import Game, other_player
from .protocol import Command, encode_command

logger = logging.getLogger(__name__)


class ClientMirror:
    def __init__(self):
        self.state: ClientState = UNNAMED
        self.message = ""
        self.nickname: str | None = None
        self.opponent: str | None = None
        self.our_player: Player = PLAYER_ONE
        self.game = Game()
        self.our_score = 0
        self.opponent_score = 0

    @property
    def opponent_player(self) -> Player:
        return other_player(self.our_player)

    @property
    def our_turn(self) -> bool:
        return self.state == PLAYING and not self.game.is_over and self.game.next_player == self.our_player

    def handle(self, data: Any) -> bool:
        """
        Применить уведомление сервера. Возвращает False, если сообщение
        отброшено (не объект или неизвестный тег состояния).
        """
        if not isinstance(data, dict):
            return False
        state = to_client_state(data.get("state"))
        if state is None:
            logger.warning("mirror: rejecting message with state %r", data.get("state"))
            return False
        self.state = state

        if state != PLAYING:
            self.message = data["message"] if isinstance(data.get("message"), str) else ""
            if isinstance(data.get("nickname"), str):
                self.nickname = data["nickname"]
            if state == IDLE:
                self.opponent = None
            return True

        column = data.get("column")
        if data.get("drop") and isinstance(column, int) and not isinstance(column, bool):
            self._play(self.opponent_player, column)
            return True
        player = to_player(data.get("player"))
        if isinstance(data.get("opponent"), str) and player is not None:
            self._new_session(data["opponent"], player)
        return True

    def drop(self, column: int) -> dict[str, Any] | None:
        """Свой ход: сразу ставим фишку локально и возвращаем команду для сервера."""
        if self.state != PLAYING or not self._play(self.our_player, column):
            return None
        return encode_command(Command.DROP, column)

    def command(self, name: str, param: Any = None) -> dict[str, Any]:
        return encode_command(Command(name), param)

    def _new_session(self, opponent: str, player: Player) -> None:
        self.opponent = opponent
        self.our_player = player
        self.our_score = 0
        self.opponent_score = 0
        self.game = Game()

    def _play(self, player: Player, column: int) -> bool:
        if not self.game.play_is_legal(player, column):
            return False
        self.game.play(player, column)
        if self.game.is_over:
            if self.game.winner == self.our_player:
                self.our_score += 1
            elif self.game.is_won:
                self.opponent_score += 1
            # сервер начинает реванш сразу, поменяв игроков местами
            self.our_player = other_player(self.our_player)
            self.game = Game()
        return True
