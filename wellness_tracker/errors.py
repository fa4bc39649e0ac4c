class StoreError(RuntimeError):
    """Raised when the embedded store rejects or fails a statement."""
