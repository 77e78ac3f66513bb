# backend/core/loaders.py
import json
import os
from typing import Any, Dict, Optional

from backend.core.rule_factory import DEFAULT_POLICY


def _read_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_policy(path: Optional[str]) -> Dict[str, Any]:
    """Status tiers from policy.json; the built-in thresholds when the file is absent."""
    if not path or not os.path.exists(path):
        return DEFAULT_POLICY
    return _read_json(path)
