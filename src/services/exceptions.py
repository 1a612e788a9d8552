class StoreError(Exception):
    """Raised when the campaign/creative store cannot complete a query.

    Callers should treat it as retryable: the failed operation left no
    partial state behind.
    """
