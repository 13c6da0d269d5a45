from .signing_store import DocumentTransaction, SigningStore
from .sqlite_signing_store import SqliteSigningStore

__all__ = ["DocumentTransaction", "SigningStore", "SqliteSigningStore"]
