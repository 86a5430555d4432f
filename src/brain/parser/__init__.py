# src/brain/parser/__init__.py
from .order_parser import MatchTier, OrderCandidate, OrderParser, OrderParseResult, parse_order_items
from .quantity import extract_quantity, find_quantity
from .validator import ValidationReason, ValidationResult, validate_order, validate_order_item
from .variants import Variants, extract_size, parse_variants

__all__ = [
    "MatchTier",
    "OrderCandidate",
    "OrderParseResult",
    "OrderParser",
    "ValidationReason",
    "ValidationResult",
    "Variants",
    "extract_quantity",
    "extract_size",
    "find_quantity",
    "parse_order_items",
    "parse_variants",
    "validate_order",
    "validate_order_item",
]
