from __future__ import annotations

from dataclasses import dataclass

from .types import Card


@dataclass(frozen=True)
class RevealAction:
    pass


@dataclass(frozen=True)
class ChallengeResponseAction:
    accept: bool


@dataclass(frozen=True)
class SubmitChallengeCardAction:
    pass


@dataclass(frozen=True)
class SelectBattleCardAction:
    card: Card


Action = RevealAction | ChallengeResponseAction | SubmitChallengeCardAction | SelectBattleCardAction
