"""Errors raised by the record store, the query engine and the import/export codec."""


class RecordStoreError(Exception):
    """Base class for record persistence failures."""


class StorageUnavailable(RecordStoreError):
    """The backing medium could not be read."""


class PersistenceFailure(RecordStoreError):
    """A write did not complete; the record must not be considered saved."""


class MalformedImport(RecordStoreError):
    """Imported text is not an array of patient records."""


class NothingToExport(Exception):
    """The store is empty. Informational, not a failure."""
