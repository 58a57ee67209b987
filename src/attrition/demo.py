from __future__ import annotations

import argparse
import time
from functools import reduce
from pathlib import Path
from typing import Sequence

from attrition.engine.compare import higher_card
from attrition.engine.controller import MatchController, StepResult
from attrition.engine.match import MatchConfig
from attrition.paths import get_paths
from attrition.services.content import ContentService
from attrition.services.statistics import StatisticsService
from attrition.services.telemetry import TelemetryService


def auto_step(controller: MatchController) -> StepResult:
    """Take the next action for the local player with a simple fixed strategy.

    Always challenges when allowed and battles with its highest card.
    """
    state = controller.state
    if state.phase == "challenge":
        if controller.challenge_offered:
            return controller.respond_to_challenge(accept=not state.player_deck.is_empty)
        return controller.submit_challenge_card()
    if state.phase == "battle":
        return controller.select_battle_card(reduce(higher_card, controller.player_battle_cards))
    return controller.reveal_turn()


def play_match(controller: MatchController, max_steps: int = 1000) -> list[str]:
    log: list[str] = []
    for _ in range(max_steps):
        if controller.state.phase == "game_over":
            break
        res = auto_step(controller)
        if not res.ok:
            log.append(f"   ! {res.error}")
            break
        for ev in res.events:
            if ev["type"] == "TURN_STARTED":
                log.append(f"Turn {ev['turn']}: {ev['player_card']} vs {ev['opponent_card']}")
        if res.outcome is not None:
            log.append(f"   {res.outcome.message}")
    return log


def _describe_winner(controller: MatchController) -> str:
    winner = controller.state.winner
    if winner is None:
        return "draw"
    return "you" if winner == "player" else "opponent"


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="attrition-demo", description="Play War of Attrition matches headlessly.")
    parser.add_argument("--seed", type=int, default=1)
    parser.add_argument("--games", type=int, default=1)
    parser.add_argument("--max-steps", type=int, default=1000)
    parser.add_argument("--quiet", action="store_true", help="only print match summaries")
    parser.add_argument("--stats", type=Path, default=None, help="statistics JSON file to update")
    parser.add_argument("--telemetry", type=Path, default=None, help="JSONL file for match telemetry")
    parser.add_argument("--rules", type=str, default=None, help="rules file inside the data directory")
    args = parser.parse_args(argv)

    paths = get_paths()
    config = MatchConfig()
    if args.rules is not None:
        config = ContentService(paths.data_dir, paths.schema_dir).load_rules(args.rules)

    telemetry = TelemetryService(args.telemetry) if args.telemetry is not None else None
    stats = StatisticsService(args.stats) if args.stats is not None else None

    print("War of Attrition demo")
    print("=====================")
    for game in range(args.games):
        seed = args.seed + game
        started = time.monotonic()
        if stats is not None:
            stats.record_game_start()
        controller = MatchController(config, seed=seed, telemetry=telemetry)

        log = play_match(controller, max_steps=args.max_steps)
        if controller.state.phase != "game_over":
            log.append(f"   Stopped after {args.max_steps} steps.")

        if not args.quiet:
            for line in log:
                print(line)
        s = controller.state
        print(
            f"Game {game + 1} (seed {seed}): winner={_describe_winner(controller)} "
            f"turns={s.turn_number} player={s.player_deck.count} "
            f"opponent={s.opponent_deck.count} discarded={len(s.discard)}"
        )
        if stats is not None and s.phase == "game_over":
            elapsed_ms = int((time.monotonic() - started) * 1000)
            stats.record_game_end(s.winner, s.turn_number, elapsed_ms)

    if stats is not None:
        st = stats.stats
        print(
            f"Totals: played={st.games_played} won={st.games_won} lost={st.games_lost} "
            f"drawn={st.games_drawn} avg_turns={st.average_turns_per_game}"
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
