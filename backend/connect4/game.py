"""
Партия «четыре в ряд»: сетка 6×7, гравитация, проверка победы и ничьей.
Никакого ввода-вывода: один и тот же класс используется сервером
(авторитетно) и клиентским зеркалом (для локального предсказания).
"""
from collections.abc import Iterator
from dataclasses import dataclass

from .constants import GRID_COLUMNS, GRID_ROWS, PLAYER_ONE, PLAYER_TWO, WIN_LENGTH, Player

# ↓, →, ↘, ↙
DIRECTIONS = ((1, 0), (0, 1), (1, 1), (1, -1))


class IllegalPlay(ValueError):
    pass


@dataclass(frozen=True)
class Cell:
    row: int
    column: int
    player: Player | None
    winning: bool


def other_player(player: Player) -> Player:
    return PLAYER_TWO if player == PLAYER_ONE else PLAYER_ONE


def _empty_grid() -> list[list[bool]]:
    return [[False] * GRID_COLUMNS for _ in range(GRID_ROWS)]


class Game:
    """
    Состояние одной партии. Строка 0 — верхняя.
    После победы или ничьей партия терминальна; для реванша создаётся новый Game.
    """

    def __init__(self) -> None:
        self._grids: dict[Player, list[list[bool]]] = {
            PLAYER_ONE: _empty_grid(),
            PLAYER_TWO: _empty_grid(),
        }
        self._winning = _empty_grid()
        self.next_player: Player = PLAYER_ONE
        self.winner: Player | None = None
        self.drawn = False

    @property
    def is_won(self) -> bool:
        return self.winner is not None

    @property
    def is_drawn(self) -> bool:
        return self.drawn

    @property
    def is_over(self) -> bool:
        return self.is_won or self.is_drawn

    def _occupied(self, row: int, column: int) -> bool:
        return self._grids[PLAYER_ONE][row][column] or self._grids[PLAYER_TWO][row][column]

    def play_is_legal(self, player: Player, column: object) -> bool:
        """Ход допустим: партия не окончена, очередь игрока, колонка существует и не заполнена."""
        if isinstance(column, bool) or not isinstance(column, int):
            return False
        if not 0 <= column < GRID_COLUMNS:
            return False
        return (
            not self.is_over
            and player == self.next_player
            and not self._occupied(0, column)
        )

    def play(self, player: Player, column: int) -> int:
        """
        Бросить фишку в колонку. Возвращает строку, куда она упала.
        Очередь переходит к сопернику даже если партия только что закончилась.
        """
        if not self.play_is_legal(player, column):
            raise IllegalPlay(f"illegal play by {player} in column {column!r}")
        row = 0
        while row + 1 < GRID_ROWS and not self._occupied(row + 1, column):
            row += 1
        self._grids[player][row][column] = True
        self._check_win_conditions(player)
        self.next_player = other_player(player)
        return row

    def cells(self) -> Iterator[Cell]:
        """Обход всех клеток построчно. Подсветка только у фишек победителя."""
        for row in range(GRID_ROWS):
            for column in range(GRID_COLUMNS):
                player = None
                if self._grids[PLAYER_ONE][row][column]:
                    player = PLAYER_ONE
                elif self._grids[PLAYER_TWO][row][column]:
                    player = PLAYER_TWO
                winning = player is not None and player == self.winner and self._winning[row][column]
                yield Cell(row, column, player, winning)

    def _check_win_conditions(self, player: Player) -> None:
        grid = self._grids[player]
        for r in range(GRID_ROWS):
            for c in range(GRID_COLUMNS):
                if not grid[r][c]:
                    continue
                for dr, dc in DIRECTIONS:
                    run = [(r + i * dr, c + i * dc) for i in range(WIN_LENGTH)]
                    if all(0 <= rr < GRID_ROWS and 0 <= cc < GRID_COLUMNS and grid[rr][cc] for rr, cc in run):
                        for rr, cc in run:
                            self._winning[rr][cc] = True

        # победа проверяется раньше ничьей: последняя клетка с линией — это победа
        if any(any(row) for row in self._winning):
            self.winner = player
        elif all(self._occupied(r, c) for r in range(GRID_ROWS) for c in range(GRID_COLUMNS)):
            self.drawn = True

    def __repr__(self) -> str:
        marks = {PLAYER_ONE: "X", PLAYER_TWO: "O", None: "."}
        rows = ["".join(marks[cell.player] for cell in self.cells() if cell.row == r) for r in range(GRID_ROWS)]
        return "Game(\n  " + "\n  ".join(rows) + f"\n  next={self.next_player} winner={self.winner} drawn={self.drawn})"
