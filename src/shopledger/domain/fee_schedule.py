"""Fee schedule domain service."""

import logging
from decimal import Decimal
from typing import Optional

from shopledger.database.base import Database
from shopledger.domain import errors
from shopledger.domain.entities import FeeDomain, FeeMode, FeeRule, FeeRuleConfig, FeeSchedule
from shopledger.domain.errors import ConflictError, NotFoundError, ValidationError
from shopledger.domain.fee_rules import (
    add_rule,
    evaluate_fee_rule,
    find_overlaps,
    remove_rule,
    sort_rules,
    update_rule,
    validate_config,
    with_rules,
)
from shopledger.utils.amount_parser import to_decimal

logger = logging.getLogger(__name__)


class FeeScheduleService:
    """Service for managing named fee schedules."""

    def __init__(self, db: Database):
        """Initialize fee schedule service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_schedule(
        self,
        name: str,
        mode: FeeMode,
        domain: FeeDomain = FeeDomain.COD,
        percentage: Optional[Decimal] = None,
        fixed_amount: Optional[Decimal] = None,
        default_fee: Decimal = Decimal("0"),
        rules: tuple[FeeRule, ...] = (),
    ) -> int:
        """Create a fee schedule.

        Range-based COD schedules start out without rules and become usable
        once the first rule is added.

        Returns:
            Schedule ID

        Raises:
            ConflictError: If a schedule with this name exists
            ValidationError: If the configuration is invalid
        """
        if self.db.get_fee_schedule_by_name(name) is not None:
            raise ConflictError(f"Fee schedule with name '{name}' already exists")

        config = FeeRuleConfig(
            mode=mode,
            domain=domain,
            rules=sort_rules(rules),
            default_fee=to_decimal(default_fee),
            percentage=None if percentage is None else to_decimal(percentage),
            fixed_amount=None if fixed_amount is None else to_decimal(fixed_amount),
        )
        if config.rules or mode != FeeMode.RANGE_BASED:
            validate_config(config)
        elif config.default_fee < 0:
            raise ValidationError("Default fee cannot be negative", field="default_fee")

        return self.db.create_fee_schedule(name=name, config=config)

    def get_schedule(self, name: str) -> FeeSchedule:
        """Get a schedule by name.

        Raises:
            NotFoundError: If no schedule has this name
        """
        schedule = self.db.get_fee_schedule_by_name(name)
        if schedule is None:
            raise NotFoundError(errors.fee_schedule_not_found(name))
        return schedule

    def list_schedules(self) -> list[FeeSchedule]:
        return self.db.list_fee_schedules()

    def add_rule(self, name: str, min: Decimal, max: Optional[Decimal], fee: Decimal) -> FeeSchedule:
        """Insert a rule and keep the list sorted.

        Raises:
            NotFoundError: If no schedule has this name
            ValidationError: If the rule is invalid
        """
        schedule = self.get_schedule(name)
        rule = FeeRule(
            min=to_decimal(min),
            max=None if max is None else to_decimal(max),
            fee=to_decimal(fee),
        )
        return self._save_rules(schedule, add_rule(schedule.config.rules, rule))

    def update_rule(
        self, name: str, index: int, min: Decimal, max: Optional[Decimal], fee: Decimal
    ) -> FeeSchedule:
        schedule = self.get_schedule(name)
        rule = FeeRule(
            min=to_decimal(min),
            max=None if max is None else to_decimal(max),
            fee=to_decimal(fee),
        )
        return self._save_rules(schedule, update_rule(schedule.config.rules, index, rule))

    def remove_rule(self, name: str, index: int) -> FeeSchedule:
        schedule = self.get_schedule(name)
        return self._save_rules(schedule, remove_rule(schedule.config.rules, index))

    def evaluate(self, name: str, value) -> Decimal:
        """Fee a schedule charges for an amount or quantity.

        Raises:
            NotFoundError: If no schedule has this name
            ValidationError: If the schedule is incomplete
        """
        return evaluate_fee_rule(self.get_schedule(name).config, value)

    def _save_rules(self, schedule: FeeSchedule, rules: tuple[FeeRule, ...]) -> FeeSchedule:
        config = with_rules(schedule.config, rules)
        for first, second in find_overlaps(config.rules):
            logger.warning(
                "Fee schedule '%s': range %s-%s overlaps %s-%s; the lower minimum wins",
                schedule.name,
                first.min,
                "inf" if first.max is None else first.max,
                second.min,
                "inf" if second.max is None else second.max,
            )
        self.db.update_fee_schedule(schedule.id, config)
        return self.get_schedule(schedule.name)
