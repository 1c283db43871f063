"""Exception raised when a caller breaks an entry-point contract."""


class PreconditionViolation(ValueError):
    """Raised for sizes, shapes or states the analysis core cannot accept."""
