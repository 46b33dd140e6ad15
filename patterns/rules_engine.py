"""Pure-function rules engine pattern.

Rules are stateless functions: (value, context) -> RuleResult.
No database, no side effects. This makes them:
- Trivially testable (pure input/output)
- Composable (chain multiple rules)
- Auditable (deterministic, explainable)

The generic checks here are specialised into reading-tracker rules in
tracker/rules.py.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Iterable


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class RuleResult:
    """Outcome of a single rule evaluation."""

    passed: bool
    rule_name: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class RuleSetResult:
    """Aggregate outcome of multiple rules."""

    all_passed: bool
    results: list[RuleResult]
    failed: list[RuleResult] = field(default_factory=list)

    def __post_init__(self):
        self.failed = [r for r in self.results if not r.passed]
        self.all_passed = len(self.failed) == 0

    @property
    def messages(self) -> list[str]:
        return [r.message for r in self.failed]


# ---------------------------------------------------------------------------
# Generic rules
# ---------------------------------------------------------------------------

def check_required_text(value: Any, field_name: str) -> RuleResult:
    """Pass when `value` is a string with non-whitespace content."""
    passed = isinstance(value, str) and bool(value.strip())
    return RuleResult(
        passed=passed,
        rule_name=f"{field_name}_required",
        message=f"{field_name} is required" if not passed else f"{field_name} present",
        details={"field": field_name},
    )


def check_int_range(value: Any, field_name: str, minimum: int, maximum: int) -> RuleResult:
    """Pass when `value` is an int (not bool) within [minimum, maximum]."""
    is_int = isinstance(value, int) and not isinstance(value, bool)
    passed = is_int and minimum <= value <= maximum
    return RuleResult(
        passed=passed,
        rule_name=f"{field_name}_range",
        message=(
            f"{field_name} {value} within {minimum}-{maximum}"
            if passed
            else f"{field_name} must be an integer between {minimum} and {maximum}"
        ),
        details={"field": field_name, "value": value, "min": minimum, "max": maximum},
    )


def check_choice(value: Any, field_name: str, choices: Iterable[str]) -> RuleResult:
    """Pass when `value` is one of `choices`."""
    allowed = list(choices)
    passed = value in allowed
    return RuleResult(
        passed=passed,
        rule_name=f"{field_name}_choice",
        message=(
            f"{field_name} is valid"
            if passed
            else f"{field_name} must be one of: {', '.join(allowed)}"
        ),
        details={"field": field_name, "value": value, "allowed": allowed},
    )


def check_pattern(value: Any, field_name: str, pattern: str, min_length: int = 0) -> RuleResult:
    """Pass when `value` fully matches `pattern` and has at least `min_length` chars."""
    is_text = isinstance(value, str)
    matches = is_text and re.fullmatch(pattern, value) is not None
    long_enough = is_text and len(value) >= min_length

    reasons = []
    if not matches:
        reasons.append(f"{field_name} contains invalid characters")
    if not long_enough:
        reasons.append(f"{field_name} must be at least {min_length} characters long")

    return RuleResult(
        passed=matches and long_enough,
        rule_name=f"{field_name}_format",
        message="; ".join(reasons) if reasons else f"{field_name} format ok",
        details={"field": field_name, "min_length": min_length},
    )


# ---------------------------------------------------------------------------
# Rule composition
# ---------------------------------------------------------------------------

def evaluate_rules(*rules: RuleResult) -> RuleSetResult:
    """Compose multiple rule results into a single aggregate.

    Example::

        result = evaluate_rules(
            check_required_text(fields.get("title"), "title"),
            check_int_range(fields.get("rating"), "rating", 0, 5),
        )
        if not result.all_passed:
            reject(result.messages)
    """
    return RuleSetResult(
        all_passed=all(r.passed for r in rules),
        results=list(rules),
    )
