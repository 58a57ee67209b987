from __future__ import annotations

from .actions import (
    Action,
    ChallengeResponseAction,
    RevealAction,
    SelectBattleCardAction,
    SubmitChallengeCardAction,
)
from .match import ActiveTurn, MatchState, TurnOutcome
from .types import Card


def card_to_dict(c: Card | None) -> dict[str, object] | None:
    if c is None:
        return None
    return {"suit": c.suit, "rank": c.rank, "value": c.value}


def _cards(cards: list[Card]) -> list[dict[str, object] | None]:
    return [card_to_dict(c) for c in cards]


def action_to_dict(a: Action) -> dict[str, object]:
    if isinstance(a, RevealAction):
        return {"type": "reveal"}
    if isinstance(a, ChallengeResponseAction):
        return {"type": "challenge_response", "accept": a.accept}
    if isinstance(a, SubmitChallengeCardAction):
        return {"type": "submit_challenge_card"}
    if isinstance(a, SelectBattleCardAction):
        return {"type": "select_battle_card", "card": card_to_dict(a.card)}
    # should be unreachable
    return {"type": "unknown"}


def outcome_to_dict(o: TurnOutcome) -> dict[str, object]:
    return {
        "winner": o.winner,
        "comparison": o.comparison,
        "message": o.message,
        "cards_lost": _cards(o.cards_lost),
        "cards_kept": _cards(o.cards_kept),
        "next_phase": o.next_phase,
        "player_may_challenge": o.player_may_challenge,
        "opponent_is_challenging": o.opponent_is_challenging,
    }


def _turn_to_dict(t: ActiveTurn | None) -> dict[str, object] | None:
    if t is None:
        return None
    return {
        "player_card": card_to_dict(t.player_card),
        "opponent_card": card_to_dict(t.opponent_card),
        "phase": t.phase,
        "challenger": t.challenger,
        "challenge_card": card_to_dict(t.challenge_card),
        "player_battle_cards": _cards(t.player_battle_cards),
        "opponent_battle_cards": _cards(t.opponent_battle_cards),
        "selected_player_card": card_to_dict(t.selected_player_card),
        "selected_opponent_card": card_to_dict(t.selected_opponent_card),
    }


def snapshot(state: MatchState) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the current match state."""
    return {
        "seed": state.seed,
        "phase": state.phase,
        "turn_number": state.turn_number,
        "winner": state.winner,
        "last_result": state.last_result,
        "player_deck": _cards(state.player_deck.to_list()),
        "opponent_deck": _cards(state.opponent_deck.to_list()),
        "discard": _cards(state.discard),
        "active_turn": _turn_to_dict(state.active_turn),
        "stats": {
            "turn_number": state.turn_number,
            "player_card_count": state.player_deck.count,
            "opponent_card_count": state.opponent_deck.count,
            "discarded_card_count": len(state.discard),
        },
        "action_log": [action_to_dict(a) for a in state.action_log],
    }
