"""Custom exceptions for the POS backend"""


class ChaiFiError(Exception):
    """Base exception for POS backend errors"""
    pass


class TransactionValidationError(ChaiFiError):
    """Transaction payload rejected before anything was persisted"""

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.field = field


class InvalidPeriodError(ChaiFiError):
    """Unknown period granularity or malformed period key"""
    pass


class StorageError(ChaiFiError):
    """Storage backend operation errors"""
    pass


class StorageUnavailableError(StorageError):
    """Storage backend cannot be reached"""
    pass


class DuplicateSummaryError(StorageError):
    """A summary row already exists for the period key"""

    def __init__(self, tier: str, key: str):
        super().__init__(f"{tier} summary already exists for {key}")
        self.tier = tier
        self.key = key
