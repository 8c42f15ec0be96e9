import json
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from errors import SuiteFormatError
from identity import IdentityFactory
from models import Scenario

PLACEHOLDER = re.compile(r"\{identity\.(\w+)\}")


def _read(path: Path):
    raw = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            return yaml.safe_load(raw)
        return json.loads(raw)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise SuiteFormatError(f"{path}: not valid {path.suffix.lstrip('.') or 'json'}: {e}")


def _substitute(value, identity):
    if isinstance(value, str):
        def repl(m):
            field = m.group(1)
            if not hasattr(identity, field):
                raise SuiteFormatError(f"Unknown identity field in placeholder: {m.group(0)}")
            return getattr(identity, field)
        return PLACEHOLDER.sub(repl, value)
    if isinstance(value, list):
        return [_substitute(v, identity) for v in value]
    if isinstance(value, dict):
        return {k: _substitute(v, identity) for k, v in value.items()}
    return value


def parse_scenarios(data, identities: IdentityFactory, source: str = "<data>") -> list[Scenario]:
    """Validate raw scenario dicts; each scenario gets its own fresh identity."""
    if isinstance(data, dict) and "scenarios" in data:
        data = data["scenarios"]
    if not isinstance(data, list):
        raise SuiteFormatError(f"{source}: expected a list of scenarios or a mapping with 'scenarios'")
    scenarios = []
    for i, raw in enumerate(data, start=1):
        if not isinstance(raw, dict):
            raise SuiteFormatError(f"{source}: scenario #{i} is not a mapping")
        identity = identities.fresh_identity(raw.get("identity_seed") or "test")
        raw = _substitute({k: v for k, v in raw.items() if k != "identity_seed"}, identity)
        try:
            scenarios.append(Scenario.model_validate(raw))
        except ValidationError as e:
            name = raw.get("name", f"#{i}")
            raise SuiteFormatError(f"{source}: invalid scenario {name!r}:\n{e}")
    return scenarios


def load_scenarios(path, identities: IdentityFactory) -> list[Scenario]:
    path = Path(path)
    if not path.exists():
        raise SuiteFormatError(f"Scenario file not found: {path}")
    return parse_scenarios(_read(path), identities, source=str(path))


def dump_scenarios(scenarios: list[Scenario], path) -> Path:
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump([s.model_dump(exclude_none=True) for s in scenarios], f, indent=2)
    return path
