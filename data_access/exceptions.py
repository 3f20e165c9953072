class StoreError(Exception):
    """Base class for record store failures."""


class UnknownCollectionError(StoreError, ValueError):
    def __init__(self, collection):
        super().__init__(f"Unknown collection: {collection!r}")
        self.collection = collection


class RecordNotFoundError(StoreError, KeyError):
    def __init__(self, collection, record_id):
        super().__init__(f"{collection}: no record with id {record_id!r}")
        self.collection = collection
        self.record_id = record_id

    def __str__(self):
        return self.args[0]


class ConcurrentWriteError(StoreError):
    """The document kept changing underneath us for every retry."""
