from __future__ import annotations

from typing import Literal

from .types import Card, Comparison

CardComparison = Literal["a_wins", "b_wins", "tie"]


def _is_two_versus_ace(a: Card, b: Card) -> bool:
    return {a.rank, b.rank} == {"2", "A"}


def compare_cards(a: Card, b: Card) -> CardComparison:
    """Compare two cards by value, except that a Two beats an Ace.

    The Two/Ace inversion only applies when the two distinct ranks are
    exactly Two and Ace; a pair of Twos or a pair of Aces is a plain tie.
    """
    if _is_two_versus_ace(a, b):
        return "a_wins" if a.rank == "2" else "b_wins"
    if a.value > b.value:
        return "a_wins"
    if a.value < b.value:
        return "b_wins"
    return "tie"


def comparison_for_player(player_card: Card, opponent_card: Card) -> Comparison:
    result = compare_cards(player_card, opponent_card)
    if result == "a_wins":
        return "player_wins"
    if result == "b_wins":
        return "opponent_wins"
    return "tie"


def higher_card(a: Card, b: Card) -> Card:
    # First card on a tie
    return b if compare_cards(a, b) == "b_wins" else a
