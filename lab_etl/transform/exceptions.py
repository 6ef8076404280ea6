class CoercionError(ValueError):
    """Raised when a non-blank source value cannot be converted to the column type."""
