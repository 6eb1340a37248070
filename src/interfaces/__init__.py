"""Public interface definitions for the catalog's external collaborators.

The services never talk to SQLite or the filesystem directly.  They depend
on the abstract base classes in this package, and concrete adapters from
``src/providers/`` are injected at assembly time (``src/main.py``).  Unit
tests inject fakes or mocks the same way.

CONCRETE PROVIDER MAP:
    Interface         →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────
    ITaxonomyStore    →  SQLiteTaxonomyStore
    IArchiveSink      →  LocalArchiveSink
"""

from src.interfaces.archive_sink import IArchiveSink
from src.interfaces.taxonomy_store import ITaxonomyStore

__all__ = [
    "IArchiveSink",
    "ITaxonomyStore",
]
