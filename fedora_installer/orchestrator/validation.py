import json
from pathlib import Path
from jsonschema import Draft202012Validator

from .errors import ConfigError

_SCHEMA_PATH = Path(__file__).with_name("installer.schema.json")
_validator_cache = {}

def validate_config(payload: dict, source: str = "<config>"):
    if "installer" not in _validator_cache:
        schema = json.loads(_SCHEMA_PATH.read_text(encoding="utf-8"))
        _validator_cache["installer"] = Draft202012Validator(schema)
    v = _validator_cache["installer"]
    errors = sorted(v.iter_errors(payload), key=lambda e: list(e.path))
    if errors:
        msgs = [f"{'/'.join([str(p) for p in e.path]) or '<root>'}: {e.message}" for e in errors]
        raise ConfigError("Schema validation failed: " + "; ".join(msgs), path=source, action="load_config")
