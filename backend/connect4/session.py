"""
Сессия одного подключения: конечный автомат unnamed -> idle ->
challenging/challenged -> playing.
Команды, недопустимые в текущем состоянии, молча игнорируются:
сервер не доверяет тому, что клиент отключил лишние кнопки.
"""
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from .constants import (
    CHALLENGED,
    CHALLENGING,
    IDLE,
    NICKNAME_RE,
    PLAYER_ONE,
    PLAYER_TWO,
    PLAYING,
    UNNAMED,
    UNNAMED_NICKNAME,
    ClientState,
    Player,
)
from .game import Game
from .protocol import Command, notification

if TYPE_CHECKING:
    from .pairing import Lobby

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = "Welcome to connect4! Please choose a nickname"


class PairingError(RuntimeError):
    """Нарушение инварианта пары (например, соперник не спарен). Не должно происходить."""


class Session:
    def __init__(self, session_id: str, lobby: "Lobby", send: Callable[[dict[str, Any]], Any]):
        self.id = session_id
        self._lobby = lobby
        self._sender = send
        self.state: ClientState = UNNAMED
        self.nickname = UNNAMED_NICKNAME
        self.game: Game | None = None
        self.player: Player | None = None

    @property
    def opponent(self) -> "Session | None":
        return self._lobby.opponent_of(self.id)

    def __repr__(self) -> str:
        return f"<Session {self.nickname} {self.state}>"

    def welcome(self) -> None:
        self._send(message=WELCOME_MESSAGE)

    def dispatch(self, command: Command, param: Any = None) -> None:
        """Выполнить команду клиента. Вся обработка синхронная."""
        handlers: dict[Command, Callable[[], None]] = {
            Command.NICK: lambda: self.nick(param),
            Command.CHALLENGE: lambda: self.challenge(param),
            Command.ACCEPT: self.accept,
            Command.DECLINE: self.decline,
            Command.CANCEL: self.cancel,
            Command.DROP: lambda: self.drop(param),
            Command.LEAVE: self.leave,
        }
        handlers[command]()

    def _ignored(self, command: str) -> None:
        logger.debug("%s: ignoring %s in state %s", self.nickname, command, self.state)

    def nick(self, nickname: str) -> None:
        if self.state != UNNAMED:
            return self._ignored("nick")
        nickname = nickname.strip()
        if not NICKNAME_RE.fullmatch(nickname):
            self._send(message=(
                "Nickname may contain only alphanumeric characters, underscores, and dashes, "
                "and must be 1 to 20 characters long"
            ))
            return
        if not self._lobby.directory.register(nickname, self.id):
            self._send(message=f"The nickname {nickname} is already taken")
            return
        self.state = IDLE
        self.nickname = nickname
        self._send(message=f"You are now known as {nickname}", nickname=nickname)
        logger.info("session %s chose nickname %s", self.id, nickname)

    def challenge(self, opponent_nickname: str) -> None:
        if self.state != IDLE:
            return self._ignored("challenge")
        opponent_nickname = opponent_nickname.strip()
        opponent_id = self._lobby.directory.lookup(opponent_nickname)
        opponent = self._lobby.get(opponent_id) if opponent_id else None

        if opponent is None:
            self._send(message=f"No such opponent {opponent_nickname}")
            return
        if opponent is self:
            self._send(message="You cannot challenge yourself")
            return
        if opponent.state != IDLE:
            self._send(message=f"{opponent.nickname} is already occupied")
            return

        self._lobby.pair(self.id, opponent.id)
        self.state = CHALLENGING
        opponent.state = CHALLENGED
        self._send(message=f"You have issued a challenge to {opponent.nickname}")
        opponent._send(message=f"You are being challenged by {self.nickname}")
        logger.info("%s has issued a challenge to %s", self.nickname, opponent.nickname)

    def accept(self) -> None:
        if self.state != CHALLENGED:
            return self._ignored("accept")
        opponent = self._lobby.require_opponent(self.id)
        game = Game()
        self.state = opponent.state = PLAYING
        self.game = opponent.game = game
        # принявший вызов ходит первым
        self.player, opponent.player = PLAYER_ONE, PLAYER_TWO
        self._send(opponent=opponent.nickname, player=self.player)
        opponent._send(opponent=self.nickname, player=opponent.player)
        logger.info("%s has accepted %s's challenge", self.nickname, opponent.nickname)

    def decline(self) -> None:
        if self.state != CHALLENGED:
            return self._ignored("decline")
        opponent = self._unpair()
        self._send(message=f"You have declined {opponent.nickname}'s challenge")
        opponent._send(message=f"{self.nickname} has declined your challenge")
        logger.info("%s has declined %s's challenge", self.nickname, opponent.nickname)

    def cancel(self) -> None:
        if self.state != CHALLENGING:
            return self._ignored("cancel")
        opponent = self._unpair()
        self._send(message=f"You have canceled your challenge to {opponent.nickname}")
        opponent._send(message=f"{self.nickname} has canceled their challenge")
        logger.info("%s has canceled their challenge to %s", self.nickname, opponent.nickname)

    def drop(self, column: Any) -> None:
        """
        Ход в колонку. Недопустимый ход игнорируется. Сопернику уходит только
        номер колонки: у ходящего фишка уже стоит локально.
        После победы или ничьей игроки меняются цветами и начинают новую партию.
        """
        if self.state != PLAYING:
            return self._ignored("drop")
        opponent = self._lobby.require_opponent(self.id)
        game, player = self.game, self.player
        if game is None or player is None:
            raise PairingError(f"{self.nickname} is playing without a game")
        if not game.play_is_legal(player, column):
            logger.debug("%s: illegal drop in column %r", self.nickname, column)
            return

        game.play(player, column)
        opponent._send(drop=True, column=column)
        logger.info("%s has made a play in their game versus %s", self.nickname, opponent.nickname)

        if game.is_over:
            match = self._lobby.match_for(self.id)
            if match is not None:
                match.record(self.id if game.is_won else None)
                logger.info(
                    "game %s vs %s finished (%s), score %d:%d, draws %d",
                    self.nickname, opponent.nickname, "won by " + self.nickname if game.is_won else "draw",
                    match.wins.get(self.id, 0), match.wins.get(opponent.id, 0), match.draws,
                )
            self.player, opponent.player = opponent.player, self.player
            self.game = opponent.game = Game()

    def leave(self) -> None:
        if self.state != PLAYING:
            return self._ignored("leave")
        opponent = self._unpair()
        self._send(message="You have left the lobby")
        opponent._send(message=f"{self.nickname} has left the lobby")
        logger.info("%s has left their game versus %s", self.nickname, opponent.nickname)

    def quit(self) -> None:
        """Отключение клиента: освободить ник и уведомить соперника."""
        if self.state != UNNAMED:
            self._lobby.directory.unregister(self.nickname)
        if self.state == CHALLENGING:
            self.cancel()
        elif self.state == CHALLENGED:
            self.decline()
        elif self.state == PLAYING:
            self.leave()
        self._lobby.remove(self.id)
        logger.info("session %s (%s) quit", self.id, self.nickname)

    def _unpair(self) -> "Session":
        """Совместный переход обеих сторон в idle с разрывом пары."""
        opponent = self._lobby.require_opponent(self.id)
        self._lobby.unpair(self.id)
        for s in (self, opponent):
            s.state = IDLE
            s.game = None
            s.player = None
        return opponent

    def _send(self, **fields: Any) -> None:
        self._sender(notification(self.state, **fields))
