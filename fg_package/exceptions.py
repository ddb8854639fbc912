"""Errors raised while building a data package"""


class FormatError(ValueError):
    """Raised when an input table is malformed or structurally inconsistent."""
