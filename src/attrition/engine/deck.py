from __future__ import annotations

import random
from typing import Iterable, Sequence

from .types import BLACK_SUITS, RANKS, RED_SUITS, SUITS, Card, Suit

# 1 reveal slot + 3 battle slots
BATTLE_STAKE = 3


def _cards_for(suits: Sequence[Suit]) -> list[Card]:
    return [Card(suit=suit, rank=rank) for suit in suits for rank in RANKS]


class Deck:
    """Ordered stack of cards. The top is the end of the internal list.

    Emptiness is a routine condition: `draw` and `peek` return None instead
    of raising.
    """

    def __init__(self, cards: Iterable[Card] | None = None) -> None:
        self._cards: list[Card] = list(cards) if cards is not None else []

    @classmethod
    def standard(cls) -> "Deck":
        return cls(_cards_for(SUITS))

    @classmethod
    def red(cls) -> "Deck":
        return cls(_cards_for(RED_SUITS))

    @classmethod
    def black(cls) -> "Deck":
        return cls(_cards_for(BLACK_SUITS))

    @property
    def count(self) -> int:
        return len(self._cards)

    @property
    def is_empty(self) -> bool:
        return not self._cards

    def __len__(self) -> int:
        return len(self._cards)

    def has_minimum_for_battle(self, stake: int = BATTLE_STAKE) -> bool:
        return len(self._cards) >= 1 + stake

    def shuffle(self, rng: random.Random) -> None:
        rng.shuffle(self._cards)

    def draw(self) -> Card | None:
        if not self._cards:
            return None
        return self._cards.pop()

    def draw_multiple(self, n: int) -> list[Card]:
        drawn: list[Card] = []
        for _ in range(max(0, n)):
            card = self.draw()
            if card is None:
                break
            drawn.append(card)
        return drawn

    def peek(self) -> Card | None:
        if not self._cards:
            return None
        return self._cards[-1]

    def add_card(self, card: Card) -> None:
        self._cards.insert(0, card)

    def add_cards(self, cards: Iterable[Card]) -> None:
        # Bottom insert keeps the batch in its given order.
        self._cards[0:0] = list(cards)

    def to_list(self) -> list[Card]:
        """Bottom-to-top copy of the contents."""
        return list(self._cards)

    def copy(self) -> "Deck":
        return Deck(self._cards)

    def reset(self) -> None:
        self._cards = []

    def __repr__(self) -> str:
        return f"Deck(count={len(self._cards)})"
