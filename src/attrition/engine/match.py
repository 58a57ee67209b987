from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Sequence

from .actions import Action
from .ai import ChallengePolicy
from .deck import BATTLE_STAKE, Deck
from .types import Card, Comparison, Phase, Side

Event = dict[str, object]


@dataclass(frozen=True)
class MatchConfig:
    battle_stake: int = BATTLE_STAKE
    challenge_policy: ChallengePolicy = field(default_factory=ChallengePolicy)


@dataclass
class ActiveTurn:
    player_card: Card | None
    opponent_card: Card | None
    phase: Phase
    challenger: Side | None = None
    challenge_card: Card | None = None
    player_battle_cards: list[Card] = field(default_factory=list)
    opponent_battle_cards: list[Card] = field(default_factory=list)
    selected_player_card: Card | None = None
    selected_opponent_card: Card | None = None


@dataclass
class TurnOutcome:
    winner: Side | None
    comparison: Comparison
    message: str
    cards_lost: list[Card]
    cards_kept: list[Card]
    next_phase: Phase
    player_may_challenge: bool = False
    opponent_is_challenging: bool = False


@dataclass
class MatchState:
    config: MatchConfig
    seed: int
    rng: random.Random
    player_deck: Deck
    opponent_deck: Deck
    discard: list[Card] = field(default_factory=list)
    turn_number: int = 0
    phase: Phase = "setup"
    active_turn: ActiveTurn | None = None
    winner: Side | None = None
    last_result: str | None = None
    event_log: list[Event] = field(default_factory=list)
    action_log: list[Action] = field(default_factory=list)

    def deck_for(self, side: Side) -> Deck:
        return self.player_deck if side == "player" else self.opponent_deck

    def both_ready_for_battle(self) -> bool:
        stake = self.config.battle_stake
        return self.player_deck.has_minimum_for_battle(stake) and self.opponent_deck.has_minimum_for_battle(
            stake
        )


def _labels(cards: Sequence[Card]) -> list[str]:
    return [c.label() for c in cards]


def set_phase(state: MatchState, phase: Phase) -> None:
    if state.phase == phase:
        return
    state.event_log.append({"type": "PHASE_CHANGED", "from": state.phase, "to": phase})
    state.phase = phase


def draw_card(state: MatchState, side: Side) -> Card | None:
    card = state.deck_for(side).draw()
    if card is not None:
        state.event_log.append({"type": "CARD_DRAWN", "side": side, "card": card.label()})
    return card


def return_cards(state: MatchState, side: Side, cards: Sequence[Card]) -> None:
    if not cards:
        return
    state.deck_for(side).add_cards(cards)
    state.event_log.append({"type": "CARDS_RETURNED", "side": side, "cards": _labels(cards)})


def discard_cards(state: MatchState, cards: Sequence[Card]) -> None:
    if not cards:
        return
    state.discard.extend(cards)
    state.event_log.append({"type": "CARDS_DISCARDED", "cards": _labels(cards)})


def end_game(state: MatchState, reason: str, *, by_count: bool = True) -> None:
    """Move to game_over and decide the winner by remaining cards.

    An empty deck loses; otherwise the larger deck wins and equal decks
    are a draw. With by_count=False the match ends without a winner.
    """
    if state.phase == "game_over":
        return
    p = state.player_deck.count
    o = state.opponent_deck.count
    if not by_count or p == o:
        state.winner = None
    elif p == 0:
        state.winner = "opponent"
    elif o == 0:
        state.winner = "player"
    else:
        state.winner = "player" if p > o else "opponent"
    state.active_turn = None
    set_phase(state, "game_over")
    state.event_log.append({"type": "GAME_ENDED", "winner": state.winner, "reason": reason})


def check_end_conditions(state: MatchState) -> bool:
    if state.phase == "game_over":
        return True
    # Cards are in flight outside the normal phase; only judge settled state.
    if state.phase != "normal":
        return False
    if state.player_deck.is_empty or state.opponent_deck.is_empty:
        end_game(state, "deck_empty")
        return True
    return False


def start_turn(state: MatchState) -> tuple[Card, Card] | None:
    """Reveal one card per side and open a new active turn.

    Returns None (and ends the match) when either deck cannot supply a card.
    """
    if state.phase != "normal":
        return None
    if state.player_deck.is_empty or state.opponent_deck.is_empty:
        end_game(state, "deck_empty")
        return None

    player_card = draw_card(state, "player")
    opponent_card = draw_card(state, "opponent")
    assert player_card is not None and opponent_card is not None

    state.turn_number += 1
    state.active_turn = ActiveTurn(player_card=player_card, opponent_card=opponent_card, phase="normal")
    state.event_log.append(
        {
            "type": "TURN_STARTED",
            "turn": state.turn_number,
            "player_card": player_card.label(),
            "opponent_card": opponent_card.label(),
        }
    )
    return player_card, opponent_card


def new_match(
    seed: int,
    config: MatchConfig | None = None,
    player_cards: Sequence[Card] | None = None,
    opponent_cards: Sequence[Card] | None = None,
    shuffle: bool = True,
) -> MatchState:
    """Set up a match: red deck for the player, black deck for the opponent.

    Explicit card lists (bottom-to-top) replace the colour split, for tests.
    """
    cfg = config or MatchConfig()
    rng = random.Random(seed)
    player_deck = Deck(player_cards) if player_cards is not None else Deck.red()
    opponent_deck = Deck(opponent_cards) if opponent_cards is not None else Deck.black()
    if shuffle:
        player_deck.shuffle(rng)
        opponent_deck.shuffle(rng)

    state = MatchState(
        config=cfg,
        seed=seed,
        rng=rng,
        player_deck=player_deck,
        opponent_deck=opponent_deck,
    )
    state.event_log.append(
        {
            "type": "MATCH_STARTED",
            "seed": seed,
            "player_cards": player_deck.count,
            "opponent_cards": opponent_deck.count,
        }
    )
    set_phase(state, "normal")
    return state
