from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, Sequence

from .actions import (
    Action,
    ChallengeResponseAction,
    RevealAction,
    SelectBattleCardAction,
    SubmitChallengeCardAction,
)
from .ai import choose_battle_card
from .match import (
    Event,
    MatchConfig,
    MatchState,
    TurnOutcome,
    check_end_conditions,
    discard_cards,
    draw_card,
    end_game,
    new_match,
    start_turn,
)
from .resolver import TurnResolver
from .serialize import outcome_to_dict, snapshot
from .types import BattleSubPhase, Card

if TYPE_CHECKING:
    from attrition.services.telemetry import TelemetryService


@dataclass
class StepResult:
    ok: bool
    outcome: TurnOutcome | None
    events: list[Event]
    error: str | None = None


Listener = Callable[[MatchState, StepResult], None]


class MatchController:
    """Translates player actions into resolver calls and keeps UI-facing flags.

    Every public action either succeeds (and may mutate the match) or is
    rejected with StepResult.ok == False, leaving the match untouched.
    """

    def __init__(
        self,
        config: MatchConfig | None = None,
        *,
        seed: int = 0,
        telemetry: "TelemetryService | None" = None,
        player_cards: Sequence[Card] | None = None,
        opponent_cards: Sequence[Card] | None = None,
        shuffle: bool = True,
    ) -> None:
        self.config = config or MatchConfig()
        self.telemetry = telemetry
        self._listeners: list[Listener] = []
        self.new_match(seed, player_cards=player_cards, opponent_cards=opponent_cards, shuffle=shuffle)

    # -------- Lifecycle --------
    def new_match(
        self,
        seed: int,
        player_cards: Sequence[Card] | None = None,
        opponent_cards: Sequence[Card] | None = None,
        shuffle: bool = True,
    ) -> MatchState:
        self.state = new_match(
            seed,
            config=self.config,
            player_cards=player_cards,
            opponent_cards=opponent_cards,
            shuffle=shuffle,
        )
        self.resolver = TurnResolver(self.state)
        self.message = "Reveal a card to begin!"
        self.player_may_act = True
        self.challenge_offered = False
        self.awaiting_challenge_card = False
        self.opponent_challenge_pending = False
        self.player_battle_cards: list[Card] = []
        self.opponent_battle_cards: list[Card] = []
        self.battle_sub_phase: BattleSubPhase = "setup"
        self._end_reported = False

        if self.telemetry is not None:
            self.telemetry.log(
                "match_started",
                {
                    "seed": seed,
                    "player_cards": self.state.player_deck.count,
                    "opponent_cards": self.state.opponent_deck.count,
                },
            )
        return self.state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` after every accepted action. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------- Internals --------
    def _reject(self, error: str) -> StepResult:
        return StepResult(ok=False, outcome=None, events=[], error=error)

    def _block_all(self) -> None:
        self.player_may_act = False
        self.challenge_offered = False
        self.awaiting_challenge_card = False
        self.opponent_challenge_pending = False
        self.player_battle_cards = []
        self.opponent_battle_cards = []
        self.battle_sub_phase = "setup"

    def _abort_turn(self, reason: str) -> TurnOutcome:
        # Invariant broken mid-flow: every in-flight card leaves play and the match ends.
        state = self.state
        turn = state.active_turn
        in_flight: list[Card] = []
        if turn is not None:
            for c in (turn.player_card, turn.opponent_card, turn.challenge_card):
                if c is not None:
                    in_flight.append(c)
            in_flight.extend(turn.player_battle_cards)
            in_flight.extend(turn.opponent_battle_cards)
        discard_cards(state, in_flight)
        end_game(state, reason)
        outcome = TurnOutcome(
            winner=state.winner,
            comparison="tie",
            message="The match cannot continue. Game over.",
            cards_lost=in_flight,
            cards_kept=[],
            next_phase="game_over",
        )
        state.last_result = outcome.message
        self.message = outcome.message
        self._block_all()
        return outcome

    def _setup_battle(self) -> TurnOutcome | None:
        state = self.state
        self.player_may_act = False
        self.battle_sub_phase = "setup"
        turn = state.active_turn
        if turn is None:
            return self._abort_turn("invariant")

        stake = state.config.battle_stake
        for _ in range(stake):
            c = draw_card(state, "player")
            if c is not None:
                turn.player_battle_cards.append(c)
            c = draw_card(state, "opponent")
            if c is not None:
                turn.opponent_battle_cards.append(c)
        if len(turn.player_battle_cards) < stake or len(turn.opponent_battle_cards) < stake:
            return self._abort_turn("battle_impossible")

        self.player_battle_cards = list(turn.player_battle_cards)
        self.opponent_battle_cards = list(turn.opponent_battle_cards)
        self.battle_sub_phase = "selection"
        self.message = "Battle! Choose one of your battle cards."
        return None

    def _apply_outcome(self, outcome: TurnOutcome) -> TurnOutcome:
        """Update the flags for `outcome`; a failed battle draw replaces it with the abort outcome."""
        self.message = outcome.message
        if outcome.next_phase == "normal":
            self.player_may_act = True
            self.challenge_offered = False
            self.awaiting_challenge_card = False
            self.opponent_challenge_pending = False
            self.player_battle_cards = []
            self.opponent_battle_cards = []
            self.battle_sub_phase = "setup"
        elif outcome.next_phase == "challenge":
            self.player_may_act = False
            self.challenge_offered = outcome.player_may_challenge
            self.opponent_challenge_pending = outcome.opponent_is_challenging
        elif outcome.next_phase == "battle":
            self.challenge_offered = False
            self.awaiting_challenge_card = False
            if self.player_battle_cards:
                # Tied battle: choose again from the same held cards.
                self.player_may_act = False
                self.battle_sub_phase = "selection"
            else:
                aborted = self._setup_battle()
                if aborted is not None:
                    return aborted
        else:
            self._block_all()
        return outcome

    def _complete(self, action: Action, outcome: TurnOutcome | None, mark: int) -> StepResult:
        state = self.state
        state.action_log.append(action)
        if outcome is not None:
            outcome = self._apply_outcome(outcome)
            if outcome.next_phase == "normal" and check_end_conditions(state):
                self._block_all()
                self.message = f"{outcome.message} Game over."

        result = StepResult(ok=True, outcome=outcome, events=state.event_log[mark:])
        self._report(outcome)
        for listener in list(self._listeners):
            listener(state, result)
        return result

    def _report(self, outcome: TurnOutcome | None) -> None:
        if self.telemetry is None:
            return
        state = self.state
        if outcome is not None:
            payload = outcome_to_dict(outcome)
            payload["turn"] = state.turn_number
            self.telemetry.log("turn_resolved", payload)
        if state.phase == "game_over" and not self._end_reported:
            self._end_reported = True
            self.telemetry.log(
                "match_ended",
                {
                    "winner": state.winner,
                    "turns": state.turn_number,
                    "player_cards": state.player_deck.count,
                    "opponent_cards": state.opponent_deck.count,
                    "discarded": len(state.discard),
                },
            )

    # -------- Actions --------
    def reveal_turn(self) -> StepResult:
        state = self.state
        if state.phase == "game_over":
            return self._reject("Match already ended.")
        if state.phase != "normal" or not self.player_may_act:
            return self._reject(f"Cannot reveal a card during the {state.phase} phase.")

        mark = len(state.event_log)
        cards = start_turn(state)
        if cards is None:
            outcome = TurnOutcome(
                winner=state.winner,
                comparison="tie",
                message="A deck is empty. Game over.",
                cards_lost=[],
                cards_kept=[],
                next_phase="game_over",
            )
            state.last_result = outcome.message
            return self._complete(RevealAction(), outcome, mark)

        outcome = self.resolver.resolve_turn(*cards)
        return self._complete(RevealAction(), outcome, mark)

    def respond_to_challenge(self, accept: bool) -> StepResult:
        state = self.state
        turn = state.active_turn
        if state.phase != "challenge" or not self.challenge_offered or turn is None:
            return self._reject("No challenge is on offer.")
        assert turn.player_card is not None and turn.opponent_card is not None

        mark = len(state.event_log)
        action = ChallengeResponseAction(accept=accept)
        if not accept:
            outcome = self.resolver.resolve_declined_challenge(turn.player_card, turn.opponent_card)
            return self._complete(action, outcome, mark)

        if state.player_deck.is_empty:
            return self._reject("Cannot draw a card for the challenge!")
        self.challenge_offered = False
        self.awaiting_challenge_card = True
        self.message = "Challenge accepted. Draw your challenge card."
        return self._complete(action, None, mark)

    def submit_challenge_card(self) -> StepResult:
        state = self.state
        turn = state.active_turn
        if state.phase != "challenge" or turn is None:
            return self._reject("No challenge is in progress.")
        if not (self.awaiting_challenge_card or self.opponent_challenge_pending):
            return self._reject("No challenge card is expected.")
        assert turn.player_card is not None and turn.opponent_card is not None

        mark = len(state.event_log)
        action = SubmitChallengeCardAction()
        if self.awaiting_challenge_card:
            card = draw_card(state, "player")
            if card is None:
                return self._complete(action, self._abort_turn("challenge_impossible"), mark)
            turn.challenge_card = card
            outcome = self.resolver.resolve_challenge(turn.player_card, turn.opponent_card, card)
            return self._complete(action, outcome, mark)

        card = draw_card(state, "opponent")
        if card is None:
            return self._complete(action, self._abort_turn("challenge_impossible"), mark)
        turn.challenge_card = card
        outcome = self.resolver.resolve_opponent_challenge(turn.player_card, turn.opponent_card, card)
        return self._complete(action, outcome, mark)

    def select_battle_card(self, card: Card) -> StepResult:
        state = self.state
        turn = state.active_turn
        if state.phase != "battle" or self.battle_sub_phase != "selection" or turn is None:
            return self._reject("Battle cards cannot be selected now.")
        if card not in self.player_battle_cards:
            return self._reject("That card is not one of your battle cards.")

        mark = len(state.event_log)
        opponent_card = choose_battle_card(self.opponent_battle_cards, state.rng)
        assert opponent_card is not None
        self.battle_sub_phase = "resolution"
        turn.selected_player_card = card
        turn.selected_opponent_card = opponent_card
        state.event_log.append(
            {"type": "BATTLE_CARDS_SELECTED", "player_card": card.label(), "opponent_card": opponent_card.label()}
        )
        outcome = self.resolver.resolve_battle(
            turn.player_card,
            turn.opponent_card,
            list(self.player_battle_cards),
            list(self.opponent_battle_cards),
            card,
            opponent_card,
        )
        return self._complete(SelectBattleCardAction(card=card), outcome, mark)

    def check_end_conditions(self) -> bool:
        ended = check_end_conditions(self.state)
        if ended:
            self._block_all()
            self._report(None)
        return ended

    def step(self, action: Action) -> StepResult:
        if isinstance(action, RevealAction):
            return self.reveal_turn()
        if isinstance(action, ChallengeResponseAction):
            return self.respond_to_challenge(action.accept)
        if isinstance(action, SubmitChallengeCardAction):
            return self.submit_challenge_card()
        if isinstance(action, SelectBattleCardAction):
            return self.select_battle_card(action.card)
        return self._reject("Unknown action.")

    # -------- Views --------
    def current_state(self) -> dict[str, object]:
        """JSON-serializable snapshot of the match plus the controller's flags."""
        view = snapshot(self.state)
        view["controller"] = {
            "message": self.message,
            "player_may_act": self.player_may_act,
            "challenge_offered": self.challenge_offered,
            "awaiting_challenge_card": self.awaiting_challenge_card,
            "opponent_challenge_pending": self.opponent_challenge_pending,
            "battle_sub_phase": self.battle_sub_phase,
            "player_battle_cards": [c.label() for c in self.player_battle_cards],
            "opponent_battle_card_count": len(self.opponent_battle_cards),
        }
        return view


def replay(
    seed: int,
    actions: Iterable[Action],
    config: MatchConfig | None = None,
    player_cards: Sequence[Card] | None = None,
    opponent_cards: Sequence[Card] | None = None,
    shuffle: bool = True,
) -> MatchController:
    controller = MatchController(
        config,
        seed=seed,
        player_cards=player_cards,
        opponent_cards=opponent_cards,
        shuffle=shuffle,
    )
    for a in actions:
        controller.step(a)
        if controller.state.phase == "game_over":
            break
    return controller
