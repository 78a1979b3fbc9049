from intakedesk.storage.base import ObjectStorage, StorageError, StoredObject
from intakedesk.storage.local import LocalObjectStorage
from intakedesk.storage.signing import DownloadSigner, InvalidDownloadLink

__all__ = [
    "DownloadSigner",
    "InvalidDownloadLink",
    "LocalObjectStorage",
    "ObjectStorage",
    "StorageError",
    "StoredObject",
]
