"""
Module: leasing_kernel.db.types
Responsibility: Persistence-side access to the money helpers.  The helpers
    live in domain/values.py so the domain layer never has to import db/.
Architecture position: Kernel > DB.  May be imported by models/, services/
    and selectors/.
"""

from leasing_kernel.domain.values import (
    DEFAULT_ROUNDING,
    MONEY_DECIMAL_PLACES,
    round_money,
    to_money,
)

__all__ = [
    "DEFAULT_ROUNDING",
    "MONEY_DECIMAL_PLACES",
    "round_money",
    "to_money",
]
