# forecasting_engine/custom_exceptions.py
class InvalidInputError(Exception):
    """Raised when a sales record is malformed (non-numeric quantity, invalid date, ...)."""
    pass

class InvalidWindowError(InvalidInputError):
    """Raised when a window or season length is not a positive integer."""
    pass

class ItemNotFoundError(Exception):
    """Raised when no forecast can be produced for the requested menu item."""
    pass
