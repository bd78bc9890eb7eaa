"""Utility functions for shopledger."""

from shopledger.utils.date_parser import parse_date
from shopledger.utils.amount_parser import parse_amount
from shopledger.utils.json_field import normalize_json_field

__all__ = ["parse_date", "parse_amount", "normalize_json_field"]
