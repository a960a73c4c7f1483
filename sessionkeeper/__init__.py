from .errors import MalformedCredential, RefreshRejected, RefreshTransientFailure, SessionError, StoreUnavailable
from .models import CredentialPair, SessionCheck, SessionReason, SessionState
from .service import SessionManager
from .store import CredentialStore, MemoryCredentialStore

__all__ = [
    "CredentialPair",
    "CredentialStore",
    "MalformedCredential",
    "MemoryCredentialStore",
    "RefreshRejected",
    "RefreshTransientFailure",
    "SessionCheck",
    "SessionError",
    "SessionManager",
    "SessionReason",
    "SessionState",
    "StoreUnavailable",
]
