"""Global enums: values must match the DB CHECK constraints exactly.

See alembic/versions/003_create_drink_balances.py and
004_create_drink_transactions.py.
"""

from enum import Enum


class DrinkType(str, Enum):
    BEER = "BEER"
    CIDER = "CIDER"
    HARD_SELTZER = "HARD_SELTZER"
    WINE = "WINE"
    SPIRIT = "SPIRIT"


class MeasureType(str, Enum):
    SIP = "SIP"
    SHOT = "SHOT"
    CHUG = "CHUG"


class TransactionSource(str, Enum):
    """Where a drink transaction came from."""
    BET = "bet"
    DISTRIBUTION = "distribution"


class BetStatus(str, Enum):
    OPEN = "OPEN"
    RESOLVED = "RESOLVED"
