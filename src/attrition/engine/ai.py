from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from .types import Card

# Low cards are cheap to risk, so the opponent challenges them eagerly.
DEFAULT_CHALLENGE_PROBABILITIES: dict[int, float] = {
    2: 0.95,
    3: 0.80,
    4: 0.65,
    5: 0.50,
    6: 0.40,
    7: 0.30,
    8: 0.25,
    9: 0.20,
    10: 0.15,
    11: 0.10,
    12: 0.05,
    13: 0.03,
    14: 0.01,
}
DEFAULT_CHALLENGE_PROBABILITY = 0.20


@dataclass(frozen=True)
class ChallengePolicy:
    """Opponent challenge tuning.

    probabilities:
      card value (2..14) -> chance the opponent challenges when about to
      lose that card on a normal reveal
    default:
      chance used for values missing from the table
    """

    probabilities: Mapping[int, float] = field(
        default_factory=lambda: dict(DEFAULT_CHALLENGE_PROBABILITIES)
    )
    default: float = DEFAULT_CHALLENGE_PROBABILITY

    def probability_for(self, card: Card) -> float:
        return float(self.probabilities.get(card.value, self.default))

    def should_challenge(self, losing_card: Card, rng: random.Random) -> bool:
        return rng.random() < self.probability_for(losing_card)


def choose_battle_card(cards: Sequence[Card], rng: random.Random) -> Card | None:
    """Uniform pick of the opponent's deciding battle card."""
    if not cards:
        return None
    return cards[rng.randrange(0, len(cards))]
