from typing import Dict, Any

from backend.core.models import StudentStatus
from backend.core.rules import AndRule, CoreUnitsRule, TotalUnitsRule, StatusPolicy


# Matriculation thresholds: English >= 4 and math >= 3, then 21 / 19 total units.
DEFAULT_POLICY: Dict[str, Any] = {
    "tiers": [
        {
            "status": StudentStatus.ELIGIBLE.value,
            "rules": [
                {"type": "core_units", "min_english": 4, "min_math": 3},
                {"type": "total_units", "min_total": 21},
            ],
        },
        {
            "status": StudentStatus.PARTIAL_BLOCK.value,
            "rules": [
                {"type": "core_units", "min_english": 4, "min_math": 3},
                {"type": "total_units", "min_total": 19},
            ],
        },
    ],
    "fallback": StudentStatus.IN_PROGRESS.value,
}


class RuleFactory:
    """
    Build status rules from JSON rule configs.
    build_policy() turns a whole policy document into a StatusPolicy.
    """

    def from_json(self, rule_cfg: Dict[str, Any]):
        rtype = (rule_cfg.get("type") or "").lower()

        # 1) אנגלית/מתמטיקה מינימום יח"ל
        if rtype == "core_units":
            return CoreUnitsRule(
                min_english=int(rule_cfg["min_english"]),
                min_math=int(rule_cfg["min_math"]),
            )

        # 2) סה"כ יח"ל
        if rtype == "total_units":
            return TotalUnitsRule(min_total=int(rule_cfg["min_total"]))

        raise ValueError(f"Unknown rule type: {rule_cfg!r}")

    def build_policy(self, policy_cfg: Dict[str, Any]) -> StatusPolicy:
        tiers = []
        for tier in policy_cfg.get("tiers", []):
            rules = [self.from_json(r) for r in tier.get("rules", [])]
            tiers.append((StudentStatus(tier["status"]), AndRule(*rules)))
        fallback = StudentStatus(policy_cfg.get("fallback", StudentStatus.IN_PROGRESS.value))
        return StatusPolicy(tiers, fallback)
