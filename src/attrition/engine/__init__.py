"""Deterministic, headless rules engine for War of Attrition.

IMPORTANT: This package performs no I/O and must never import from
attrition.services at runtime.
"""

from .actions import ChallengeResponseAction, RevealAction, SelectBattleCardAction, SubmitChallengeCardAction
from .ai import ChallengePolicy
from .compare import compare_cards
from .controller import MatchController, StepResult, replay
from .deck import Deck
from .match import MatchConfig, MatchState, TurnOutcome, new_match
from .resolver import TurnResolver
from .types import Card, Phase, Rank, Side, Suit

__all__ = [
    "Card",
    "ChallengePolicy",
    "ChallengeResponseAction",
    "Deck",
    "MatchConfig",
    "MatchController",
    "MatchState",
    "Phase",
    "Rank",
    "RevealAction",
    "SelectBattleCardAction",
    "Side",
    "StepResult",
    "SubmitChallengeCardAction",
    "Suit",
    "TurnOutcome",
    "TurnResolver",
    "compare_cards",
    "new_match",
    "replay",
]
