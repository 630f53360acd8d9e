"""
Domain exceptions.
"""


class PesaLedgerError(Exception):
    """Base class for application errors."""


class ExtractionError(PesaLedgerError):
    """A message matched a known shape but its fields could not be parsed."""

    def __init__(self, rule: str, field: str):
        super().__init__(f"Rule '{rule}' matched but {field} could not be extracted")
        self.rule = rule
        self.field = field


class SchemaVersionError(PesaLedgerError):
    """The local database was written by a newer schema than this code knows."""


class RemoteStoreError(PesaLedgerError):
    """A single remote document operation failed."""


class RemoteUnavailableError(RemoteStoreError):
    """The remote store cannot be reached at all."""


class SyncError(PesaLedgerError):
    """A sync pass failed as a whole."""
