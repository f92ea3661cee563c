# prioritizer/errors.py


class PrioritizerError(Exception):
    """Base class for every failure raised while preparing a selection."""


class ConfigMissing(PrioritizerError):
    """A latency source or transaction ledger file does not exist."""


class ConfigInvalid(PrioritizerError):
    """A configuration value is malformed."""


class DataEmpty(PrioritizerError):
    """The latency source exists but holds no entries."""


class CatalogInvalid(PrioritizerError):
    """The latency source holds something other than country -> positive latency."""


class LedgerInvalid(PrioritizerError):
    """The transaction ledger cannot be decoded as CSV text."""


class RowInvalid(PrioritizerError):
    """
    A single ledger row failed validation.
    The offending transaction id (when the row has one) is kept on the exception.
    """
    def __init__(self, message: str, transaction_id: str | None = None):
        super().__init__(message)
        self.transaction_id = transaction_id


class MissingCountry(RowInvalid):
    pass


class InvalidAmount(RowInvalid):
    pass


class UnknownCountry(RowInvalid):
    def __init__(self, country: str, transaction_id: str | None = None):
        message = f"No country data for {country}"
        if transaction_id:
            message += f" - Transaction {transaction_id}"
        super().__init__(message, transaction_id)
        self.country = country


class DuplicateTransaction(RowInvalid):
    pass
