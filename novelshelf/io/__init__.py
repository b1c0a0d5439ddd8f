"""Input/output components for novelshelf.

This package contains local persistence, file import, and remote catalog
loading used by the catalog merger.
"""

from .importer import BookRecordBuilder
from .remote_catalog import RemoteCatalogLoader, RemoteFetchError
from .storage import LocalBookStore

__all__ = ["BookRecordBuilder", "LocalBookStore", "RemoteCatalogLoader", "RemoteFetchError"]
