from typing import Protocol, List, Tuple

from backend.core.models import RuleResult, StudentStatus, UnitTotals


class StatusRule(Protocol):
    def evaluate(self, totals: UnitTotals) -> RuleResult: ...


class CoreUnitsRule:
    """English/math floor: both subjects must reach their minimum unit load."""

    def __init__(self, min_english: int, min_math: int):
        self.min_english = int(min_english)
        self.min_math = int(min_math)

    def evaluate(self, totals: UnitTotals) -> RuleResult:
        if totals.english < self.min_english:
            return RuleResult(False, f"English: units {totals.english} < required {self.min_english}")
        if totals.math < self.min_math:
            return RuleResult(False, f"Mathematics: units {totals.math} < required {self.min_math}")
        return RuleResult(True, f"core OK (english={totals.english}, math={totals.math})")


class TotalUnitsRule:
    def __init__(self, min_total: int):
        self.min_total = int(min_total)

    def evaluate(self, totals: UnitTotals) -> RuleResult:
        passed = totals.total >= self.min_total
        return RuleResult(passed, f"total={totals.total} {'≥' if passed else '<'} required={self.min_total}")


class AndRule:
    def __init__(self, *rules):
        self.rules = list(rules)

    def evaluate(self, totals: UnitTotals) -> RuleResult:
        exps = []
        for r in self.rules:
            rr = r.evaluate(totals)
            exps.append(rr.explanation)
            if not rr.passed:
                return RuleResult(False, " | ".join(exps))
        return RuleResult(True, " | ".join(exps))


class StatusPolicy:
    """
    Ordered tiers, first match wins. The tiers are checked strictest first,
    so a student meeting the 21-unit tier never lands in the 19-unit one.
    """

    def __init__(self, tiers: List[Tuple[StudentStatus, StatusRule]], fallback: StudentStatus):
        self.tiers = list(tiers)
        self.fallback = fallback

    def classify(self, totals: UnitTotals) -> StudentStatus:
        for status, rule in self.tiers:
            if rule.evaluate(totals).passed:
                return status
        return self.fallback

    def explain(self, totals: UnitTotals) -> List[str]:
        lines: List[str] = []
        for status, rule in self.tiers:
            rr = rule.evaluate(totals)
            lines.append(f"{status.value}: {'passed' if rr.passed else 'failed'} ({rr.explanation})")
            if rr.passed:
                return lines
        lines.append(f"{self.fallback.value}: fallback")
        return lines
