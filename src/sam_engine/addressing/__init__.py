"""Address evaluation for raw address text and for parsed address trees."""

from .evaluator import AddressEvaluator
from .resolver import Address, AddressResolver, char_address, line_address, mkaddr

__all__ = [
    "Address",
    "AddressEvaluator",
    "AddressResolver",
    "char_address",
    "line_address",
    "mkaddr",
]
