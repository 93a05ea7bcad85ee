"""
Custom exceptions for the state championship simulator.
"""


class ChampSimError(Exception):
    """Base exception for all custom errors."""
    pass


# Input Errors
class ValidationError(ChampSimError):
    """Raised when the roster or run parameters are invalid."""
    pass


class BracketShapeError(ChampSimError):
    """Raised when a bracket does not match a supported field size."""
    def __init__(self, message: str, match_count: int = None, field_size: int = None):
        self.match_count = match_count
        self.field_size = field_size
        super().__init__(message)


# Rating Service Errors
class RatingServiceError(ChampSimError):
    """Raised when the Matchplay API call fails."""
    def __init__(self, message: str, status_code: int = None):
        self.status_code = status_code
        super().__init__(message)


# Configuration Errors
class ConfigurationError(ChampSimError):
    """Raised when configuration is invalid or missing."""
    pass
