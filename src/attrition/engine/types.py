from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Suit = Literal["hearts", "diamonds", "clubs", "spades"]
Rank = Literal["2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K", "A"]

Side = Literal["player", "opponent"]
Phase = Literal["setup", "normal", "challenge", "battle", "game_over"]
Comparison = Literal["player_wins", "opponent_wins", "tie"]
BattleSubPhase = Literal["setup", "selection", "resolution"]

SUITS: tuple[Suit, ...] = ("hearts", "diamonds", "clubs", "spades")
RED_SUITS: tuple[Suit, ...] = ("hearts", "diamonds")
BLACK_SUITS: tuple[Suit, ...] = ("clubs", "spades")
RANKS: tuple[Rank, ...] = ("2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K", "A")

RANK_VALUES: dict[Rank, int] = {rank: i + 2 for i, rank in enumerate(RANKS)}

SUIT_SYMBOLS: dict[Suit, str] = {
    "hearts": "♥",
    "diamonds": "♦",
    "clubs": "♣",
    "spades": "♠",
}


@dataclass(frozen=True)
class Card:
    """Immutable playing card. Equality and hashing are by value."""

    suit: Suit
    rank: Rank

    @property
    def value(self) -> int:
        return RANK_VALUES[self.rank]

    @property
    def is_red(self) -> bool:
        return self.suit in RED_SUITS

    def label(self) -> str:
        return f"{self.rank}{SUIT_SYMBOLS[self.suit]}"

    def __str__(self) -> str:
        return f"{self.rank} of {self.suit}"
