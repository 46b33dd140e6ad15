"""Reading tracker business rules — pure functions.

Specialises the generic rules engine checks for books, collections and
tenant ids. Repositories evaluate these before touching the store and turn
failed rule sets into ValidationError via ensure_valid().
"""

import uuid
from typing import Any, Mapping

from core.errors import ValidationError
from patterns.rules_engine import (
    RuleResult,
    RuleSetResult,
    check_choice,
    check_int_range,
    check_pattern,
    check_required_text,
    evaluate_rules,
)
from tracker.config import config

# Fields the store manages; callers may never write them.
IMMUTABLE_FIELDS = ("id", "_id", "dbId", "createdAt")

BOOK_FIELDS = ("title", "author", "review", "rating", "status", "collectionId")
COLLECTION_FIELDS = ("title", "description")


# ---------------------------------------------------------------------------
# Single-field rules
# ---------------------------------------------------------------------------

def check_rating(value: Any) -> RuleResult:
    return check_int_range(value, "rating", config.rating.min_rating, config.rating.max_rating)


def check_status(value: Any) -> RuleResult:
    return check_choice(value, "status", config.statuses)


def check_db_id(value: Any) -> RuleResult:
    return check_pattern(
        value,
        "dbId",
        config.tenant.db_id_pattern,
        min_length=config.tenant.db_id_min_length,
    )


def check_not_last_collection(collection_count: int) -> RuleResult:
    """A tenant must keep at least one collection."""
    passed = collection_count > 1
    return RuleResult(
        passed=passed,
        rule_name="keep_one_collection",
        message=(
            f"{collection_count} collections, deletion allowed"
            if passed
            else "Cannot delete the only collection in this database"
        ),
        details={"collection_count": collection_count},
    )


def check_immutable_fields(fields: Mapping[str, Any]) -> RuleResult:
    touched = sorted(k for k in fields if k in IMMUTABLE_FIELDS)
    return RuleResult(
        passed=not touched,
        rule_name="immutable_fields",
        message=f"Cannot change {', '.join(touched)}" if touched else "no immutable fields",
        details={"fields": touched},
    )


def check_known_fields(fields: Mapping[str, Any], allowed: tuple[str, ...]) -> RuleResult:
    unknown = sorted(k for k in fields if k not in allowed and k not in IMMUTABLE_FIELDS)
    return RuleResult(
        passed=not unknown,
        rule_name="known_fields",
        message=f"Unknown fields: {', '.join(unknown)}" if unknown else "all fields known",
        details={"fields": unknown},
    )


# ---------------------------------------------------------------------------
# Composite rule sets
# ---------------------------------------------------------------------------

def book_create_rules(fields: Mapping[str, Any]) -> RuleSetResult:
    rules = [
        check_required_text(fields.get("title"), "title"),
        check_required_text(fields.get("author"), "author"),
        check_required_text(fields.get("collectionId"), "collectionId"),
        check_rating(fields.get("rating", config.rating.min_rating)),
        check_status(fields.get("status", config.default_status)),
    ]
    return evaluate_rules(*rules)


def book_update_rules(fields: Mapping[str, Any]) -> RuleSetResult:
    rules = [check_immutable_fields(fields), check_known_fields(fields, BOOK_FIELDS)]
    for name in ("title", "author", "collectionId"):
        if name in fields:
            rules.append(check_required_text(fields[name], name))
    if "rating" in fields:
        rules.append(check_rating(fields["rating"]))
    if "status" in fields:
        rules.append(check_status(fields["status"]))
    return evaluate_rules(*rules)


def collection_create_rules(fields: Mapping[str, Any]) -> RuleSetResult:
    return evaluate_rules(check_required_text(fields.get("title"), "title"))


def collection_update_rules(fields: Mapping[str, Any]) -> RuleSetResult:
    rules = [check_immutable_fields(fields), check_known_fields(fields, COLLECTION_FIELDS)]
    if "title" in fields:
        rules.append(check_required_text(fields["title"], "title"))
    return evaluate_rules(*rules)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def ensure_valid(result: RuleSetResult) -> None:
    """Raise ValidationError listing every failed rule."""
    if not result.all_passed:
        raise ValidationError(
            "; ".join(result.messages),
            details={"rules": [r.rule_name for r in result.failed]},
        )


def normalize_title(title: str) -> str:
    """Key used for duplicate-name checks: trimmed and case-folded."""
    return title.strip().casefold()


def parse_object_id(value: Any, field_name: str = "id") -> uuid.UUID:
    """Parse a store identifier, rejecting missing or malformed values."""
    if isinstance(value, uuid.UUID):
        return value
    if value is None or value == "":
        raise ValidationError(f"Missing {field_name}")
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field_name} format", details={field_name: str(value)})
