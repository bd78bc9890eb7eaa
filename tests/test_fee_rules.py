"""Tests for tiered fee rule evaluation."""

from decimal import Decimal

import pytest

from shopledger.domain.entities import FeeDomain, FeeMode, FeeRule, FeeRuleConfig
from shopledger.domain.errors import ValidationError
from shopledger.domain.fee_rules import (
    add_rule,
    evaluate_fee_rule,
    find_overlaps,
    remove_rule,
    rule_from_dict,
    rules_from_field,
    update_rule,
)
from shopledger.utils.json_field import Parsed, Raw


def _rule(min_value, max_value, fee):
    return FeeRule(
        min=Decimal(str(min_value)),
        max=None if max_value is None else Decimal(str(max_value)),
        fee=Decimal(str(fee)),
    )


def _ranges(*rules, domain=FeeDomain.COD, default="0"):
    return FeeRuleConfig(
        mode=FeeMode.RANGE_BASED, domain=domain, rules=tuple(rules), default_fee=Decimal(default)
    )


class TestEvaluateFeeRule:
    @pytest.mark.parametrize("value,expected", [(5, "10"), (6, "20"), (1000, "20"), (1, "10")])
    def test_first_matching_range(self, value, expected):
        config = _ranges(_rule(1, 5, 10), _rule(6, None, 20))
        assert evaluate_fee_rule(config, value) == Decimal(expected)

    def test_cod_default_when_nothing_matches(self):
        config = _ranges(_rule(1, 1000, 50), default="150")
        assert evaluate_fee_rule(config, 5000) == Decimal("150")

    def test_quantity_default_charges_extra_units(self):
        """Test unmatched quantities pay the default for each unit after the first."""
        config = _ranges(_rule(1, 1, 0), domain=FeeDomain.QUANTITY, default="150")
        assert evaluate_fee_rule(config, 1) == Decimal("0")
        assert evaluate_fee_rule(config, 4) == Decimal("450")

    def test_quantity_without_rules(self):
        config = _ranges(domain=FeeDomain.QUANTITY, default="100")
        assert evaluate_fee_rule(config, 1) == Decimal("0")
        assert evaluate_fee_rule(config, 3) == Decimal("200")

    def test_overlapping_ranges_lower_min_wins(self):
        config = _ranges(_rule(5, 20, 99), _rule(1, 10, 10))
        assert evaluate_fee_rule(config, 7) == Decimal("10")

    def test_percentage(self):
        config = FeeRuleConfig(mode=FeeMode.PERCENTAGE, percentage=Decimal("2.5"))
        assert evaluate_fee_rule(config, Decimal("1999")) == Decimal("49.98")

    def test_percentage_rounds_half_up(self):
        config = FeeRuleConfig(mode=FeeMode.PERCENTAGE, percentage=Decimal("1"))
        assert evaluate_fee_rule(config, Decimal("0.5")) == Decimal("0.01")

    def test_fixed(self):
        config = FeeRuleConfig(mode=FeeMode.FIXED, fixed_amount=Decimal("75"))
        assert evaluate_fee_rule(config, 123456) == Decimal("75.00")

    def test_percentage_requires_value(self):
        with pytest.raises(ValidationError, match="percentage"):
            evaluate_fee_rule(FeeRuleConfig(mode=FeeMode.PERCENTAGE), 100)

    def test_fixed_requires_value(self):
        with pytest.raises(ValidationError) as exc_info:
            evaluate_fee_rule(FeeRuleConfig(mode=FeeMode.FIXED), 100)
        assert exc_info.value.field == "fixed_amount"

    def test_cod_ranges_require_rules(self):
        with pytest.raises(ValidationError, match="rules are required"):
            evaluate_fee_rule(_ranges(), 100)


class TestRuleEditing:
    def test_add_keeps_rules_sorted(self):
        rules = add_rule((_rule(10, None, 30),), _rule(1, 9, 10))
        assert [r.min for r in rules] == [Decimal("1"), Decimal("10")]

    def test_update_resorts(self):
        rules = (_rule(1, 5, 10), _rule(6, None, 20))
        updated = update_rule(rules, 0, _rule(50, None, 5))
        assert [r.min for r in updated] == [Decimal("6"), Decimal("50")]

    def test_remove(self):
        rules = (_rule(1, 5, 10), _rule(6, None, 20))
        assert remove_rule(rules, 1) == (_rule(1, 5, 10),)

    def test_remove_bad_index(self):
        with pytest.raises(ValidationError, match="No fee rule at position 4"):
            remove_rule((_rule(1, 5, 10),), 3)

    @pytest.mark.parametrize(
        "rule,field",
        [
            (_rule(0, 5, 10), "min"),
            (_rule(5, 4, 10), "max"),
            (_rule(1, 5, -1), "fee"),
        ],
    )
    def test_invalid_rules_rejected(self, rule, field):
        with pytest.raises(ValidationError) as exc_info:
            add_rule((), rule)
        assert exc_info.value.field == field

    def test_find_overlaps(self):
        rules = (_rule(1, 10, 5), _rule(5, 20, 6), _rule(21, None, 7))
        assert find_overlaps(rules) == [(_rule(1, 10, 5), _rule(5, 20, 6))]

    def test_open_ended_rule_overlaps_everything_after(self):
        rules = (_rule(1, None, 5), _rule(100, 200, 6))
        assert len(find_overlaps(rules)) == 1


class TestRuleParsing:
    def test_charge_key_and_default_min(self):
        rule = rule_from_dict({"max": 2, "charge": 100})
        assert rule == _rule(1, 2, 100)

    def test_rules_from_raw_json_sorted(self):
        rules = rules_from_field(
            Raw('[{"min": 3, "max": null, "fee": 50}, {"min": 1, "max": 2, "fee": 25}]')
        )
        assert [r.min for r in rules] == [Decimal("1"), Decimal("3")]
        assert rules[1].max is None

    def test_rules_from_parsed_object(self):
        rules = rules_from_field(Parsed({"quantityRules": [{"min": 1, "max": 1, "charge": 0}]}))
        assert rules == (_rule(1, 1, 0),)

    def test_empty_text_is_no_rules(self):
        assert rules_from_field(Raw("")) == ()

    def test_invalid_json(self):
        with pytest.raises(ValidationError, match="Invalid JSON"):
            rules_from_field(Raw("[{oops"))

    def test_rule_without_fee(self):
        with pytest.raises(ValidationError, match="has no fee"):
            rule_from_dict({"min": 1, "max": 2})

    @pytest.mark.parametrize(
        "field",
        [Parsed([{"min": 0, "max": 5, "fee": 10}]), Raw('[{"min": "0", "fee": 10}]')],
    )
    def test_zero_min_rejected_in_either_form(self, field):
        with pytest.raises(ValidationError, match="at least 1"):
            rules_from_field(field)

    def test_null_min_means_one(self):
        assert rules_from_field(Parsed([{"min": None, "max": 5, "fee": 10}])) == (_rule(1, 5, 10),)
