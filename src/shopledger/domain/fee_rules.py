"""Tiered fee rule evaluation.

One range-lookup algorithm serves two uses: the COD handling fee charged by a
logistics company, and quantity-based shipping pricing. Rule lists are always
kept sorted ascending by ``min`` and the first matching rule wins, so
overlapping ranges are legal but the lower ``min`` takes precedence.
"""

from dataclasses import replace
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

from shopledger.domain.entities import FeeDomain, FeeMode, FeeRule, FeeRuleConfig
from shopledger.domain.errors import ValidationError
from shopledger.utils.amount_parser import round_money, to_decimal
from shopledger.utils.json_field import JsonField, normalize_json_field

ZERO = Decimal("0")
ONE = Decimal("1")


def validate_rule(rule: FeeRule) -> None:
    """Check a single rule.

    Raises:
        ValidationError: If ``min < 1``, ``max < min`` or ``fee < 0``
    """
    if rule.min < 1:
        raise ValidationError(f"Rule minimum must be at least 1 (got {rule.min})", field="min")
    if rule.max is not None and rule.max < rule.min:
        raise ValidationError(
            f"Rule maximum {rule.max} is below its minimum {rule.min}", field="max"
        )
    if rule.fee < 0:
        raise ValidationError(f"Rule fee cannot be negative (got {rule.fee})", field="fee")


def sort_rules(rules: Iterable[FeeRule]) -> tuple[FeeRule, ...]:
    """Rules ordered by ascending ``min``; ties keep their existing order."""
    return tuple(sorted(rules, key=lambda r: r.min))


def add_rule(rules: Sequence[FeeRule], rule: FeeRule) -> tuple[FeeRule, ...]:
    validate_rule(rule)
    return sort_rules([*rules, rule])


def update_rule(rules: Sequence[FeeRule], index: int, rule: FeeRule) -> tuple[FeeRule, ...]:
    """Replace the rule at ``index`` (position in the sorted list)."""
    _check_index(rules, index)
    validate_rule(rule)
    updated = list(rules)
    updated[index] = rule
    return sort_rules(updated)


def remove_rule(rules: Sequence[FeeRule], index: int) -> tuple[FeeRule, ...]:
    _check_index(rules, index)
    return sort_rules(r for i, r in enumerate(rules) if i != index)


def find_overlaps(rules: Sequence[FeeRule]) -> list[tuple[FeeRule, FeeRule]]:
    """Pairs of rules whose ranges intersect, in sorted order."""
    ordered = sort_rules(rules)
    overlaps = []
    for i, first in enumerate(ordered):
        for second in ordered[i + 1:]:
            if first.max is None or second.min <= first.max:
                overlaps.append((first, second))
    return overlaps


def find_matching_rule(rules: Sequence[FeeRule], value: Decimal) -> Optional[FeeRule]:
    """First rule, by ascending ``min``, whose range contains ``value``."""
    for rule in sort_rules(rules):
        if rule.matches(value):
            return rule
    return None


def validate_config(config: FeeRuleConfig) -> None:
    """Check that a configuration has what its mode needs.

    Raises:
        ValidationError: If a required setting is missing or a rule is invalid
    """
    if config.mode == FeeMode.PERCENTAGE:
        if config.percentage is None:
            raise ValidationError(
                "Fee percentage is required for percentage-based calculation",
                field="percentage",
            )
        if config.percentage < 0:
            raise ValidationError("Fee percentage cannot be negative", field="percentage")
    elif config.mode == FeeMode.FIXED:
        if config.fixed_amount is None:
            raise ValidationError("Fixed fee is required for fixed calculation", field="fixed_amount")
        if config.fixed_amount < 0:
            raise ValidationError("Fixed fee cannot be negative", field="fixed_amount")
    else:
        if config.domain == FeeDomain.COD and not config.rules:
            raise ValidationError(
                "Fee rules are required for range-based calculation", field="rules"
            )
        for rule in config.rules:
            validate_rule(rule)
    if config.default_fee < 0:
        raise ValidationError("Default fee cannot be negative", field="default_fee")


def evaluate_fee_rule(config: FeeRuleConfig, value) -> Decimal:
    """Fee for a COD amount or an item quantity.

    PERCENTAGE charges ``value * percentage / 100`` and FIXED charges the
    flat amount. RANGE_BASED charges the fee of the first matching rule; when
    nothing matches, COD falls back to ``default_fee`` and quantity pricing
    charges ``default_fee`` for every unit after the first.

    Returns:
        Fee rounded to the cent

    Raises:
        ValidationError: If the configuration is incomplete
    """
    validate_config(config)
    value = to_decimal(value)

    if config.mode == FeeMode.PERCENTAGE:
        return round_money(value * config.percentage / 100)
    if config.mode == FeeMode.FIXED:
        return round_money(config.fixed_amount)

    rule = find_matching_rule(config.rules, value)
    if rule is not None:
        return round_money(rule.fee)
    if config.domain == FeeDomain.QUANTITY:
        return round_money(max(ZERO, value - ONE) * config.default_fee)
    return round_money(config.default_fee)


def rule_from_dict(data: dict[str, Any]) -> FeeRule:
    """Build a rule from its stored form.

    Quantity rules written by older configuration screens call the fee
    ``charge``; a missing ``min`` means 1.

    Raises:
        ValidationError: If the rule is malformed
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Fee rule must be an object, got {data!r}", field="rules")
    fee = data.get("fee", data.get("charge"))
    if fee is None:
        raise ValidationError(f"Fee rule {data!r} has no fee", field="fee")
    try:
        rule = FeeRule(
            min=to_decimal(1 if data.get("min") is None else data["min"]),
            max=None if data.get("max") is None else to_decimal(data["max"]),
            fee=to_decimal(fee),
        )
    except (ValueError, ArithmeticError) as e:
        raise ValidationError(f"Invalid fee rule {data!r}: {e}", field="rules")
    validate_rule(rule)
    return rule


def rule_to_dict(rule: FeeRule) -> dict[str, Any]:
    return {
        "min": str(rule.min),
        "max": None if rule.max is None else str(rule.max),
        "fee": str(rule.fee),
    }


def rules_from_field(field: JsonField) -> tuple[FeeRule, ...]:
    """Normalize a raw-or-parsed rule list into sorted rules.

    Accepts a bare list or an object with a ``rules`` / ``quantityRules`` key.

    Raises:
        ValidationError: If the field is not valid JSON or a rule is malformed
    """
    try:
        data = normalize_json_field(field, default=[])
    except ValueError as e:
        raise ValidationError(str(e), field="rules")
    if isinstance(data, dict):
        data = data.get("rules", data.get("quantityRules", []))
    if not isinstance(data, list):
        raise ValidationError("Fee rules must be a list", field="rules")
    return sort_rules(rule_from_dict(item) for item in data)


def with_rules(config: FeeRuleConfig, rules: Iterable[FeeRule]) -> FeeRuleConfig:
    return replace(config, rules=sort_rules(rules))


def _check_index(rules: Sequence[FeeRule], index: int) -> None:
    if index < 0 or index >= len(rules):
        raise ValidationError(f"No fee rule at position {index + 1}", field="index")
