from __future__ import annotations

from typing import Sequence

from .compare import compare_cards
from .match import ActiveTurn, MatchState, TurnOutcome, discard_cards, end_game, return_cards, set_phase
from .types import Card, Side


class TurnResolver:
    """Phase state machine for reveals, challenges and battles.

    Every resolve_* call applies its deck/discard moves to the match state
    before returning a TurnOutcome describing them. Cards of a contested
    result stay staged on the active turn until the challenge or battle
    closes.
    """

    def __init__(self, state: MatchState) -> None:
        self.state = state

    # -------- Helpers --------
    def _finish(self, outcome: TurnOutcome) -> TurnOutcome:
        state = self.state
        state.last_result = outcome.message
        if outcome.next_phase == "normal":
            state.active_turn = None
        set_phase(state, outcome.next_phase)
        state.event_log.append(
            {
                "type": "TURN_RESOLVED",
                "turn": state.turn_number,
                "comparison": outcome.comparison,
                "winner": outcome.winner,
                "next_phase": outcome.next_phase,
            }
        )
        return outcome

    def _game_over(self, outcome: TurnOutcome, reason: str, *, by_count: bool = True) -> TurnOutcome:
        self.state.last_result = outcome.message
        end_game(self.state, reason, by_count=by_count)
        return outcome

    def _enter_battle(self, player_card: Card | None, opponent_card: Card | None) -> None:
        self.state.active_turn = ActiveTurn(player_card=player_card, opponent_card=opponent_card, phase="battle")

    # -------- Normal reveal --------
    def resolve_turn(self, player_card: Card, opponent_card: Card) -> TurnOutcome:
        result = compare_cards(player_card, opponent_card)
        if result == "a_wins":
            return self._resolve_player_win(player_card, opponent_card)
        if result == "b_wins":
            return self._resolve_opponent_win(player_card, opponent_card)
        return self._resolve_tie(player_card, opponent_card)

    def _resolve_player_win(self, player_card: Card, opponent_card: Card) -> TurnOutcome:
        state = self.state
        policy = state.config.challenge_policy
        if not state.opponent_deck.is_empty and policy.should_challenge(opponent_card, state.rng):
            state.active_turn = ActiveTurn(
                player_card=player_card,
                opponent_card=opponent_card,
                phase="challenge",
                challenger="opponent",
            )
            state.event_log.append({"type": "CHALLENGE_DECLARED", "side": "opponent"})
            return self._finish(
                TurnOutcome(
                    winner=None,
                    comparison="player_wins",
                    message="You win this turn, but the opponent challenges!",
                    cards_lost=[],
                    cards_kept=[],
                    next_phase="challenge",
                    opponent_is_challenging=True,
                )
            )

        return_cards(state, "player", [player_card])
        discard_cards(state, [opponent_card])
        return self._finish(
            TurnOutcome(
                winner="player",
                comparison="player_wins",
                message="You win this turn!",
                cards_lost=[opponent_card],
                cards_kept=[player_card],
                next_phase="normal",
            )
        )

    def _resolve_opponent_win(self, player_card: Card, opponent_card: Card) -> TurnOutcome:
        self.state.active_turn = ActiveTurn(
            player_card=player_card,
            opponent_card=opponent_card,
            phase="challenge",
            challenger="player",
        )
        return self._finish(
            TurnOutcome(
                winner="opponent",
                comparison="opponent_wins",
                message="Opponent wins this turn!",
                cards_lost=[player_card],
                cards_kept=[opponent_card],
                next_phase="challenge",
                player_may_challenge=True,
            )
        )

    def _resolve_tie(self, player_card: Card, opponent_card: Card) -> TurnOutcome:
        if not self.state.both_ready_for_battle():
            discard_cards(self.state, [player_card, opponent_card])
            return self._game_over(
                TurnOutcome(
                    winner=None,
                    comparison="tie",
                    message="Battle cannot be conducted - insufficient cards. Game ends.",
                    cards_lost=[player_card, opponent_card],
                    cards_kept=[],
                    next_phase="game_over",
                ),
                reason="battle_impossible",
                by_count=False,
            )

        self._enter_battle(player_card, opponent_card)
        return self._finish(
            TurnOutcome(
                winner=None,
                comparison="tie",
                message="Cards tie! Preparing for battle...",
                cards_lost=[],
                cards_kept=[player_card, opponent_card],
                next_phase="battle",
            )
        )

    # -------- Challenges --------
    def resolve_declined_challenge(self, player_card: Card, opponent_card: Card) -> TurnOutcome:
        """Commit a normal-phase loss the player chose not to contest."""
        return_cards(self.state, "opponent", [opponent_card])
        discard_cards(self.state, [player_card])
        return self._finish(
            TurnOutcome(
                winner="opponent",
                comparison="opponent_wins",
                message="You declined the challenge. Your card is discarded.",
                cards_lost=[player_card],
                cards_kept=[opponent_card],
                next_phase="normal",
            )
        )

    def resolve_challenge(
        self, original_player_card: Card, original_opponent_card: Card, challenge_card: Card
    ) -> TurnOutcome:
        state = self.state
        result = compare_cards(challenge_card, original_opponent_card)

        if result == "a_wins":
            return_cards(state, "player", [original_player_card, challenge_card])
            discard_cards(state, [original_opponent_card])
            return self._finish(
                TurnOutcome(
                    winner="player",
                    comparison="player_wins",
                    message="Challenge successful! You keep your cards.",
                    cards_lost=[original_opponent_card],
                    cards_kept=[original_player_card, challenge_card],
                    next_phase="normal",
                )
            )

        lost = [original_player_card, challenge_card]
        discard_cards(state, lost)
        return_cards(state, "opponent", [original_opponent_card])

        if result == "b_wins":
            return self._finish(
                TurnOutcome(
                    winner="opponent",
                    comparison="opponent_wins",
                    message="Challenge failed! You lose your cards.",
                    cards_lost=lost,
                    cards_kept=[original_opponent_card],
                    next_phase="normal",
                )
            )

        # An unresolved challenge forces a battle over fresh stakes.
        if not state.both_ready_for_battle():
            return self._game_over(
                TurnOutcome(
                    winner="opponent",
                    comparison="tie",
                    message="Challenge ties! You lose your cards. Not enough cards for a battle. Game ends.",
                    cards_lost=lost,
                    cards_kept=[original_opponent_card],
                    next_phase="game_over",
                ),
                reason="battle_impossible",
            )
        self._enter_battle(None, None)
        return self._finish(
            TurnOutcome(
                winner="opponent",
                comparison="tie",
                message="Challenge ties! You lose your cards. Battle!",
                cards_lost=lost,
                cards_kept=[original_opponent_card],
                next_phase="battle",
            )
        )

    def resolve_opponent_challenge(
        self, player_card: Card, opponent_card: Card, opponent_challenge_card: Card
    ) -> TurnOutcome:
        state = self.state
        result = compare_cards(opponent_challenge_card, player_card)

        if result == "a_wins":
            kept = [opponent_card, opponent_challenge_card]
            return_cards(state, "opponent", kept)
            discard_cards(state, [player_card])
            return self._finish(
                TurnOutcome(
                    winner="opponent",
                    comparison="opponent_wins",
                    message="Opponent's challenge succeeds! Your card is discarded.",
                    cards_lost=[player_card],
                    cards_kept=kept,
                    next_phase="normal",
                )
            )

        lost = [opponent_card, opponent_challenge_card]
        discard_cards(state, lost)
        return_cards(state, "player", [player_card])
        # Unlike a tied player challenge, a tied opponent challenge never
        # escalates to a battle.
        message = (
            "Opponent's challenge ties! The opponent loses its cards."
            if result == "tie"
            else "Opponent's challenge fails! The opponent loses its cards."
        )
        return self._finish(
            TurnOutcome(
                winner="player",
                comparison="tie" if result == "tie" else "player_wins",
                message=message,
                cards_lost=lost,
                cards_kept=[player_card],
                next_phase="normal",
            )
        )

    # -------- Battles --------
    def resolve_battle(
        self,
        original_player_card: Card | None,
        original_opponent_card: Card | None,
        player_battle_cards: Sequence[Card],
        opponent_battle_cards: Sequence[Card],
        selected_player_card: Card,
        selected_opponent_card: Card,
    ) -> TurnOutcome:
        state = self.state
        result = compare_cards(selected_player_card, selected_opponent_card)

        player_stake = ([original_player_card] if original_player_card is not None else []) + list(
            player_battle_cards
        )
        opponent_stake = ([original_opponent_card] if original_opponent_card is not None else []) + list(
            opponent_battle_cards
        )

        if result != "tie":
            winner: Side = "player" if result == "a_wins" else "opponent"
            kept = player_stake if winner == "player" else opponent_stake
            lost = opponent_stake if winner == "player" else player_stake
            return_cards(state, winner, kept)
            discard_cards(state, lost)
            message = (
                "You win the battle! All opponent cards discarded."
                if winner == "player"
                else "Opponent wins the battle! All your cards discarded."
            )
            return self._finish(
                TurnOutcome(
                    winner=winner,
                    comparison="player_wins" if winner == "player" else "opponent_wins",
                    message=message,
                    cards_lost=lost,
                    cards_kept=kept,
                    next_phase="normal",
                )
            )

        held = player_stake + opponent_stake
        if not state.both_ready_for_battle():
            discard_cards(state, held)
            return self._game_over(
                TurnOutcome(
                    winner=None,
                    comparison="tie",
                    message="Another tie in battle, but insufficient cards for another battle. Game ends.",
                    cards_lost=held,
                    cards_kept=[],
                    next_phase="game_over",
                ),
                reason="battle_impossible",
                by_count=False,
            )

        # The same held stakes are fought over again; nothing new is drawn.
        turn = state.active_turn
        if turn is not None:
            turn.selected_player_card = None
            turn.selected_opponent_card = None
        return self._finish(
            TurnOutcome(
                winner=None,
                comparison="tie",
                message="Battle ties again! Another battle required.",
                cards_lost=[],
                cards_kept=held,
                next_phase="battle",
            )
        )
