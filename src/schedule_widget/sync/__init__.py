"""Synchronization of the schedule with its remote JSON document."""

from .remote_store import (
    BlobStore,
    GitHubContentsStore,
    Blob,
    NOT_FOUND,
    RemoteError,
    AuthenticationError,
    ConflictError,
)
from .envelope import Envelope, EnvelopeError, encode_envelope, decode_envelope
from .coordinator import SyncCoordinator, SyncOperation, SyncKind

__all__ = [
    "BlobStore",
    "GitHubContentsStore",
    "Blob",
    "NOT_FOUND",
    "RemoteError",
    "AuthenticationError",
    "ConflictError",
    "Envelope",
    "EnvelopeError",
    "encode_envelope",
    "decode_envelope",
    "SyncCoordinator",
    "SyncOperation",
    "SyncKind",
]
