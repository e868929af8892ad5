"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidInputError(DomainException):
    """Input snapshot is malformed (negative budget, bad date, NaN amount, ...)"""

    pass


class InsufficientHistoryError(DomainException):
    """Not enough months of transaction history for a full-confidence result"""

    def __init__(self, months_available: int, months_required: int):
        self.months_available = months_available
        self.months_required = months_required
        super().__init__(
            f"{months_available} month(s) of history available, {months_required} required"
        )
