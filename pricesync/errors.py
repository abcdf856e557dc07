# pricesync/errors.py

"""Exception types raised across the price sync engine.

Fetch failures and extraction misses are *values*, not exceptions
(see :class:`~pricesync.scrapers.content_fetcher.FetchError` and the
``None`` return of the extractor).  Only problems the caller cannot
treat as a normal outcome are raised.
"""


class PriceSyncError(Exception):
    """Base class for all pricesync exceptions."""


class ConfigurationError(PriceSyncError):
    """A required credential or setting is missing."""


class PersistenceError(PriceSyncError):
    """A read or write against the price store failed."""


class ReconciliationError(PersistenceError):
    """Stored state violates an invariant the reconciler relies on."""
