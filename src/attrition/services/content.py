from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from attrition.engine.ai import ChallengePolicy
from attrition.engine.match import MatchConfig


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def _load_schema(path: Path) -> object:
    return _load_json(path)


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.path])
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_int(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int):
        raise ContentError(f"Expected int for {key}")
    return v


def _require_number(obj: Mapping[str, object], key: str) -> float:
    v = obj.get(key)
    if not isinstance(v, (int, float)):
        raise ContentError(f"Expected number for {key}")
    return float(v)


def _parse_probabilities(raw: object) -> dict[int, float]:
    if not isinstance(raw, dict):
        raise ContentError("challenge.probabilities must be an object")
    out: dict[int, float] = {}
    for k, v in raw.items():
        # schema restricts keys to card values 2..14
        if not isinstance(v, (int, float)):
            raise ContentError(f"Probability for {k} must be a number")
        out[int(k)] = float(v)
    return out


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def load_rules(self, filename: str = "rules.json") -> MatchConfig:
        path = self._data_dir / filename
        schema = _load_schema(self._schema_dir / "rules.schema.json")
        raw = _load_json(path)
        validate_json(raw, schema, context=str(path))
        if not isinstance(raw, dict):
            raise ContentError(f"{filename} must be an object")

        challenge = raw.get("challenge")
        if not isinstance(challenge, dict):
            raise ContentError(f"{filename}.challenge must be an object")
        policy = ChallengePolicy(
            probabilities=_parse_probabilities(challenge.get("probabilities")),
            default=_require_number(challenge, "default_probability"),
        )
        return MatchConfig(battle_stake=_require_int(raw, "battle_stake"), challenge_policy=policy)

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_rules()
