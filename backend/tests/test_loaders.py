import json

import pytest

from backend.core.loaders import load_policy
from backend.core.rule_factory import DEFAULT_POLICY, RuleFactory


def test_missing_policy_file_uses_defaults(tmp_path):
    assert load_policy(str(tmp_path / "policy.json")) is DEFAULT_POLICY
    assert load_policy(None) is DEFAULT_POLICY


def test_policy_file_is_read(tmp_path):
    path = tmp_path / "policy.json"
    cfg = {"tiers": [], "fallback": "בתהליך"}
    path.write_text(json.dumps(cfg, ensure_ascii=False), encoding="utf-8")
    assert load_policy(str(path)) == cfg


def test_unknown_rule_type():
    with pytest.raises(ValueError):
        RuleFactory().from_json({"type": "psychometric"})
