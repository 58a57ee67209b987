from __future__ import annotations

from typing import Sequence

from attrition.engine.ai import ChallengePolicy
from attrition.engine.match import MatchConfig, MatchState, new_match, start_turn
from attrition.engine.resolver import TurnResolver
from attrition.engine.types import Card, Rank, Suit

NEVER = MatchConfig(challenge_policy=ChallengePolicy(probabilities={}, default=0.0))
ALWAYS = MatchConfig(challenge_policy=ChallengePolicy(probabilities={}, default=1.0))


def _cards(suit: Suit, ranks: Sequence[Rank]) -> list[Card]:
    return [Card(suit, r) for r in ranks]


def _match(
    player: Sequence[Card], opponent: Sequence[Card], config: MatchConfig = NEVER
) -> tuple[MatchState, TurnResolver]:
    # decks are listed bottom-to-top; the last card is revealed first
    state = new_match(seed=1, config=config, player_cards=player, opponent_cards=opponent, shuffle=False)
    return state, TurnResolver(state)


def _reveal(state: MatchState) -> tuple[Card, Card]:
    cards = start_turn(state)
    assert cards is not None
    return cards


def test_king_beats_queen() -> None:
    state, resolver = _match(
        _cards("diamonds", ["2", "3"]) + [Card("hearts", "K")],
        _cards("clubs", ["2", "3"]) + [Card("spades", "Q")],
    )
    out = resolver.resolve_turn(*_reveal(state))

    assert out.comparison == "player_wins"
    assert out.winner == "player"
    assert out.next_phase == "normal"
    assert out.cards_kept == [Card("hearts", "K")]
    assert out.cards_lost == [Card("spades", "Q")]
    assert state.discard == [Card("spades", "Q")]
    assert state.player_deck.to_list()[0] == Card("hearts", "K")
    assert state.player_deck.count == 3
    assert state.opponent_deck.count == 2
    assert state.phase == "normal"
    assert state.active_turn is None
    assert state.turn_number == 1
    assert state.last_result == "You win this turn!"


def test_seven_loses_to_jack_and_offers_challenge() -> None:
    state, resolver = _match(
        _cards("diamonds", ["2", "3"]) + [Card("hearts", "7")],
        _cards("clubs", ["2", "3"]) + [Card("spades", "J")],
    )
    out = resolver.resolve_turn(*_reveal(state))

    assert out.comparison == "opponent_wins"
    assert out.winner == "opponent"
    assert out.next_phase == "challenge"
    assert out.player_may_challenge
    assert not out.opponent_is_challenging
    # nothing is committed while the challenge window is open
    assert state.discard == []
    assert state.player_deck.count == 2
    assert state.opponent_deck.count == 2
    assert state.phase == "challenge"
    assert state.active_turn is not None
    assert state.active_turn.challenger == "player"


def test_tie_with_enough_cards_starts_battle() -> None:
    state, resolver = _match(
        _cards("diamonds", ["2", "3", "4", "5"]) + [Card("hearts", "8")],
        _cards("clubs", ["2", "3", "4", "5"]) + [Card("spades", "8")],
    )
    out = resolver.resolve_turn(*_reveal(state))

    assert out.comparison == "tie"
    assert out.winner is None
    assert out.next_phase == "battle"
    assert out.cards_kept == [Card("hearts", "8"), Card("spades", "8")]
    assert state.discard == []
    assert state.player_deck.count == 4
    assert state.opponent_deck.count == 4
    assert state.phase == "battle"
    assert state.active_turn is not None
    assert state.active_turn.player_card == Card("hearts", "8")
    assert state.active_turn.opponent_card == Card("spades", "8")


def test_tie_without_battle_cards_ends_match() -> None:
    state, resolver = _match(
        _cards("diamonds", ["2", "3"]) + [Card("hearts", "8")],
        _cards("clubs", ["2", "3"]) + [Card("spades", "8")],
    )
    out = resolver.resolve_turn(*_reveal(state))

    assert out.next_phase == "game_over"
    assert out.winner is None
    assert state.discard == [Card("hearts", "8"), Card("spades", "8")]
    assert state.phase == "game_over"
    assert state.winner is None
    assert state.active_turn is None


def test_opponent_challenge_holds_cards() -> None:
    state, resolver = _match(
        _cards("diamonds", ["2"]) + [Card("hearts", "K")],
        _cards("clubs", ["2"]) + [Card("spades", "5")],
        config=ALWAYS,
    )
    out = resolver.resolve_turn(*_reveal(state))

    assert out.comparison == "player_wins"
    assert out.winner is None
    assert out.opponent_is_challenging
    assert not out.player_may_challenge
    assert out.next_phase == "challenge"
    assert state.discard == []
    assert state.active_turn is not None
    assert state.active_turn.challenger == "opponent"


def test_opponent_cannot_challenge_with_empty_deck() -> None:
    state, resolver = _match(
        _cards("diamonds", ["2"]) + [Card("hearts", "K")],
        [Card("spades", "5")],
        config=ALWAYS,
    )
    out = resolver.resolve_turn(*_reveal(state))
    assert out.next_phase == "normal"
    assert out.winner == "player"
    assert state.discard == [Card("spades", "5")]


def _after_loss(player_extra: Sequence[Card] = ()) -> tuple[MatchState, TurnResolver, Card, Card]:
    state, resolver = _match(
        _cards("diamonds", ["2", "3", "4", "5"]) + list(player_extra) + [Card("hearts", "7")],
        _cards("clubs", ["2", "3", "4", "5"]) + [Card("spades", "J")],
    )
    p, o = _reveal(state)
    resolver.resolve_turn(p, o)
    return state, resolver, p, o


def test_declined_challenge_commits_loss() -> None:
    state, resolver, p, o = _after_loss()
    out = resolver.resolve_declined_challenge(p, o)

    assert out.winner == "opponent"
    assert out.next_phase == "normal"
    assert state.discard == [p]
    assert state.opponent_deck.to_list()[0] == o
    assert state.active_turn is None


def test_successful_challenge_keeps_both_cards() -> None:
    state, resolver, p, o = _after_loss()
    king = Card("hearts", "K")
    out = resolver.resolve_challenge(p, o, king)

    assert out.comparison == "player_wins"
    assert out.winner == "player"
    assert out.next_phase == "normal"
    assert out.cards_kept == [p, king]
    assert state.player_deck.to_list()[:2] == [p, king]
    assert state.discard == [o]
    # the opponent's card never went back into its deck
    assert o not in state.opponent_deck.to_list()


def test_failed_challenge_loses_both_cards() -> None:
    state, resolver, p, o = _after_loss()
    three = Card("hearts", "3")
    out = resolver.resolve_challenge(p, o, three)

    assert out.comparison == "opponent_wins"
    assert out.next_phase == "normal"
    assert state.discard == [p, three]
    assert state.opponent_deck.to_list()[0] == o


def test_tied_challenge_forces_battle() -> None:
    state, resolver, p, o = _after_loss()
    jack = Card("hearts", "J")
    out = resolver.resolve_challenge(p, o, jack)

    assert out.comparison == "tie"
    assert out.next_phase == "battle"
    assert state.discard == [p, jack]
    assert state.opponent_deck.to_list()[0] == o
    assert state.phase == "battle"
    assert state.active_turn is not None
    assert state.active_turn.player_card is None
    assert state.active_turn.opponent_card is None


def test_tied_challenge_without_battle_cards_ends_match() -> None:
    state, resolver = _match(
        [Card("diamonds", "2"), Card("hearts", "7")],
        _cards("clubs", ["2", "3", "4", "5"]) + [Card("spades", "J")],
    )
    p, o = _reveal(state)
    resolver.resolve_turn(p, o)
    out = resolver.resolve_challenge(p, o, Card("hearts", "J"))

    assert out.next_phase == "game_over"
    assert state.phase == "game_over"
    assert state.winner == "opponent"


def test_opponent_challenge_success() -> None:
    state, resolver = _match(
        _cards("diamonds", ["2"]) + [Card("hearts", "K")],
        _cards("clubs", ["2"]) + [Card("spades", "5")],
        config=ALWAYS,
    )
    p, o = _reveal(state)
    resolver.resolve_turn(p, o)
    ace = Card("spades", "A")
    out = resolver.resolve_opponent_challenge(p, o, ace)

    assert out.winner == "opponent"
    assert out.comparison == "opponent_wins"
    assert out.next_phase == "normal"
    assert state.opponent_deck.to_list()[:2] == [o, ace]
    assert state.discard == [p]


def test_opponent_challenge_failure_and_tie_route_to_normal() -> None:
    for challenge, comparison in ((Card("spades", "3"), "player_wins"), (Card("spades", "K"), "tie")):
        state, resolver = _match(
            _cards("diamonds", ["2", "3", "4", "5"]) + [Card("hearts", "K")],
            _cards("clubs", ["2", "3", "4", "5"]) + [Card("spades", "5")],
            config=ALWAYS,
        )
        p, o = _reveal(state)
        resolver.resolve_turn(p, o)
        out = resolver.resolve_opponent_challenge(p, o, challenge)

        assert out.winner == "player"
        assert out.comparison == comparison
        assert out.next_phase == "normal"
        assert state.discard == [o, challenge]
        assert state.player_deck.to_list()[0] == p
        assert state.phase == "normal"

    assert "ties" in out.message


def _battle_ready(player_extra: Sequence[Card], opponent_extra: Sequence[Card]) -> tuple[MatchState, TurnResolver]:
    state, resolver = _match(
        list(player_extra) + [Card("hearts", "8")],
        list(opponent_extra) + [Card("spades", "8")],
    )
    resolver.resolve_turn(*_reveal(state))
    assert state.phase == "battle"
    return state, resolver


def test_battle_winner_keeps_stake_loser_discards() -> None:
    state, resolver = _battle_ready(
        _cards("diamonds", ["2", "3", "4", "5", "6"]),
        _cards("clubs", ["2", "3", "4", "5", "6"]),
    )
    pb = state.player_deck.draw_multiple(3)
    ob = state.opponent_deck.draw_multiple(3)
    out = resolver.resolve_battle(Card("hearts", "8"), Card("spades", "8"), pb, ob, pb[0], ob[2])

    # pb[0] is 6♦, ob[2] is 4♣
    assert out.winner == "player"
    assert out.next_phase == "normal"
    assert out.cards_kept == [Card("hearts", "8")] + pb
    assert out.cards_lost == [Card("spades", "8")] + ob
    assert state.player_deck.to_list()[:4] == [Card("hearts", "8")] + pb
    assert state.discard == [Card("spades", "8")] + ob
    assert len(state.discard) == 4
    assert state.active_turn is None


def test_battle_loss_discards_player_stake() -> None:
    state, resolver = _battle_ready(
        _cards("diamonds", ["2", "3", "4", "5", "6"]),
        _cards("clubs", ["2", "3", "4", "5", "6"]),
    )
    pb = state.player_deck.draw_multiple(3)
    ob = state.opponent_deck.draw_multiple(3)
    out = resolver.resolve_battle(Card("hearts", "8"), Card("spades", "8"), pb, ob, pb[2], ob[0])

    assert out.winner == "opponent"
    assert state.discard == [Card("hearts", "8")] + pb
    assert state.opponent_deck.to_list()[:4] == [Card("spades", "8")] + ob


def test_battle_tie_with_cards_left_holds_all_stakes() -> None:
    state, resolver = _battle_ready(
        _cards("diamonds", ["2", "3", "4", "5", "6", "7", "9"]),
        _cards("clubs", ["2", "3", "4", "5", "6", "7", "9"]),
    )
    pb = state.player_deck.draw_multiple(3)
    ob = state.opponent_deck.draw_multiple(3)
    out = resolver.resolve_battle(Card("hearts", "8"), Card("spades", "8"), pb, ob, pb[0], ob[0])

    assert out.comparison == "tie"
    assert out.next_phase == "battle"
    assert len(out.cards_kept) == 8
    assert state.discard == []
    assert state.phase == "battle"
    assert state.active_turn is not None


def test_battle_tie_when_decks_run_low_ends_match() -> None:
    state, resolver = _battle_ready(
        _cards("diamonds", ["2", "3", "4", "5"]),
        _cards("clubs", ["2", "3", "4", "5"]),
    )
    pb = state.player_deck.draw_multiple(3)
    ob = state.opponent_deck.draw_multiple(3)
    assert state.player_deck.count == 1
    out = resolver.resolve_battle(Card("hearts", "8"), Card("spades", "8"), pb, ob, pb[0], ob[0])

    assert out.next_phase == "game_over"
    assert out.winner is None
    assert len(state.discard) == 8
    assert state.phase == "game_over"
    assert state.winner is None


def test_tie_without_battle_cards_has_no_winner_even_with_uneven_decks() -> None:
    state, resolver = _match(
        _cards("diamonds", ["2", "3", "4"]) + [Card("hearts", "8")],
        [Card("clubs", "2"), Card("spades", "8")],
    )
    out = resolver.resolve_turn(*_reveal(state))

    assert out.next_phase == "game_over"
    assert state.player_deck.count == 3
    assert state.opponent_deck.count == 1
    assert out.winner is None
    assert state.winner is None
    assert state.event_log[-1] == {"type": "GAME_ENDED", "winner": None, "reason": "battle_impossible"}


def test_battle_tie_when_decks_run_low_has_no_winner_with_uneven_decks() -> None:
    state, resolver = _battle_ready(
        _cards("diamonds", ["2", "3", "4", "5", "6"]),
        _cards("clubs", ["2", "3", "4", "5"]),
    )
    pb = state.player_deck.draw_multiple(3)
    ob = state.opponent_deck.draw_multiple(3)
    # pb is 6♦ 5♦ 4♦, ob is 5♣ 4♣ 3♣
    out = resolver.resolve_battle(Card("hearts", "8"), Card("spades", "8"), pb, ob, pb[1], ob[0])

    assert out.next_phase == "game_over"
    assert state.player_deck.count == 2
    assert state.opponent_deck.count == 1
    assert state.winner is None


def test_battle_after_tied_challenge_stakes_battle_cards_only() -> None:
    state, resolver, p, o = _after_loss([Card("hearts", "J")])
    total = state.player_deck.count + state.opponent_deck.count + len(state.discard) + 2
    jack = state.player_deck.draw()
    assert jack == Card("hearts", "J")
    resolver.resolve_challenge(p, o, jack)
    assert state.phase == "battle"

    pb = state.player_deck.draw_multiple(3)
    ob = state.opponent_deck.draw_multiple(3)
    # pb is 5♦ 4♦ 3♦, ob is 5♣ 4♣ 3♣
    out = resolver.resolve_battle(None, None, pb, ob, pb[0], ob[1])

    assert out.winner == "player"
    assert out.next_phase == "normal"
    assert out.cards_kept == pb
    assert out.cards_lost == ob
    assert state.player_deck.to_list() == pb + [Card("diamonds", "2")]
    assert state.discard == [p, jack] + ob
    assert state.player_deck.count + state.opponent_deck.count + len(state.discard) == total
    assert state.active_turn is None
