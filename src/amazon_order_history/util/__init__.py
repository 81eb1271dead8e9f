from .money import find_first_money
from .validators import classify_identifier, validate_secret

__all__ = [
    "find_first_money",
    "classify_identifier",
    "validate_secret",
]
