"""Utility functions for housedesk."""

from housedesk.utils.date_parser import parse_date
from housedesk.utils.amount_parser import parse_amount
from housedesk.utils.timestamps import now_iso, parse_iso, to_iso, utc_now

__all__ = ["parse_date", "parse_amount", "now_iso", "parse_iso", "to_iso", "utc_now"]
