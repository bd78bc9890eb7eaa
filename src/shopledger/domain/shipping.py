"""Shipping charges: a per-city base charge plus quantity-based pricing."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from shopledger.domain.entities import FeeRule
from shopledger.domain.errors import ValidationError
from shopledger.domain.fee_rules import rules_from_field
from shopledger.utils.amount_parser import round_money, to_decimal
from shopledger.utils.json_field import JsonField, Parsed, normalize_json_field, tag_json_field

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
DEFAULT_CITY_CHARGE = Decimal("200")
DEFAULT_QUANTITY_CHARGE = Decimal("150")

# Keys of the combined config that are never city names
_CONFIG_KEYS = ("cityCharges", "defaultCityCharge", "quantityRules", "defaultQuantityCharge")


@dataclass(frozen=True)
class ShippingConfig:
    city_charges: dict[str, Decimal]
    default_city_charge: Decimal = DEFAULT_CITY_CHARGE
    quantity_rules: tuple[FeeRule, ...] = ()
    default_quantity_charge: Decimal = DEFAULT_QUANTITY_CHARGE


def normalize_city(city: str) -> str:
    return " ".join(city.split()).lower()


def _city_map(data: dict[str, Any]) -> tuple[dict[str, Any], Any]:
    """City charges and default charge from either stored city format.

    ``{"cityCharges": {...}, "defaultCityCharge": 200}`` nests the cities;
    the older flat form ``{"Karachi": 150, "default": 300}`` puts them at the
    top level, with ``default`` doubling as the default charge.
    """
    if "cityCharges" in data:
        return data.get("cityCharges") or {}, data.get("defaultCityCharge")
    cities = {key: value for key, value in data.items() if key not in _CONFIG_KEYS}
    default = cities.get("default", data.get("defaultCityCharge"))
    return cities, default


def parse_shipping_config(field: JsonField) -> ShippingConfig:
    """Build a shipping config from its stored JSON form.

    City charges come nested under ``cityCharges`` or as a flat city map.
    ``quantityRules`` and ``defaultQuantityCharge`` set quantity pricing;
    anything missing falls back to the system defaults.

    Raises:
        ValidationError: If the field is not valid JSON or holds bad values
    """
    try:
        data = normalize_json_field(field, default={})
    except ValueError as e:
        raise ValidationError(str(e), field="shipping_config")
    if not isinstance(data, dict):
        raise ValidationError("Shipping config must be an object", field="shipping_config")

    cities, default_city = _city_map(data)
    if not isinstance(cities, dict):
        raise ValidationError("cityCharges must be an object", field="shipping_config")
    try:
        city_charges = {str(city): to_decimal(charge) for city, charge in cities.items()}
        default_quantity = data.get("defaultQuantityCharge")
        return ShippingConfig(
            city_charges=city_charges,
            default_city_charge=(
                DEFAULT_CITY_CHARGE if default_city is None else to_decimal(default_city)
            ),
            quantity_rules=rules_from_field(Parsed(data.get("quantityRules") or [])),
            default_quantity_charge=(
                DEFAULT_QUANTITY_CHARGE
                if default_quantity is None
                else to_decimal(default_quantity)
            ),
        )
    except ValidationError:
        raise
    except (TypeError, ValueError, ArithmeticError) as e:
        raise ValidationError(f"Invalid shipping config: {e}", field="shipping_config")


def city_charge(config: ShippingConfig, city: Optional[str]) -> Decimal:
    """Base charge for a city.

    Lookup order: exact name, name ignoring case and extra whitespace, the
    ``default`` entry, then the configured default charge.
    """
    if city and city.strip():
        name = city.strip()
        if name in config.city_charges:
            return config.city_charges[name]
        wanted = normalize_city(name)
        for known, charge in config.city_charges.items():
            if known != "default" and normalize_city(known) == wanted:
                return charge
    if "default" in config.city_charges:
        return config.city_charges["default"]
    logger.debug("No shipping charge configured for city %r, using default", city)
    return config.default_city_charge


def quantity_charge(config: ShippingConfig, quantity: Decimal) -> Decimal:
    """Charge for the units of one order line beyond the first.

    The first unit rides on the city charge. A matching rule charges its
    amount per additional unit. Below the first rule the default charge
    applies per additional unit; past the rules the last rule's charge
    applies once, or the per-unit default when that charge is zero.
    """
    extra = quantity - 1
    if extra <= 0:
        return ZERO
    rules = config.quantity_rules
    for rule in rules:
        if rule.matches(quantity):
            return rule.fee * extra
    if rules and quantity >= rules[0].min and rules[-1].fee:
        logger.debug("Quantity %s is outside every rule, charging the last rule", quantity)
        return rules[-1].fee
    return config.default_quantity_charge * extra


def calculate_shipping_charges(config: Any, city: Optional[str], items: Any) -> Decimal:
    """Total shipping charge for an order.

    Args:
        config: Shipping config as JSON text, a dict, or a ShippingConfig
        city: Delivery city
        items: List of ``{"quantity": n}`` items, as JSON text or a list

    Returns:
        City base charge plus the quantity charge of every item
    """
    if not isinstance(config, ShippingConfig):
        config = parse_shipping_config(tag_json_field(config))

    try:
        parsed_items = normalize_json_field(tag_json_field(items), default=[])
    except ValueError as e:
        raise ValidationError(str(e), field="items")
    if not isinstance(parsed_items, list):
        raise ValidationError("Items must be a list", field="items")

    total = city_charge(config, city)
    for item in parsed_items:
        quantity = item.get("quantity", 1) if isinstance(item, dict) else item
        try:
            quantity = to_decimal(quantity)
        except (TypeError, ValueError, ArithmeticError):
            raise ValidationError(f"Invalid item quantity {quantity!r}", field="items")
        if quantity <= 0:
            continue
        total += quantity_charge(config, quantity)
    return round_money(total)
