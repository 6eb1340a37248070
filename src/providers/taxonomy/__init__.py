"""Genre taxonomy persistence providers.

SQLiteTaxonomyStore keeps genres, clusters and the influence graph in
data/musictree.db.  The schema enforces scoped name uniqueness with
partial unique indexes and repeats the colour / edge rules as CHECK
constraints.
"""

from src.providers.taxonomy.sqlite_taxonomy_store import SQLiteTaxonomyStore

__all__ = ["SQLiteTaxonomyStore"]
