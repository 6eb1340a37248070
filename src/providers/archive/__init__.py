"""Import artifact sinks.

LocalArchiveSink writes archived import payloads and error reports to a
directory on local disk.  An object-store adapter implementing IArchiveSink
can replace it without touching the import pipeline.
"""

from src.providers.archive.local_archive_sink import LocalArchiveSink

__all__ = ["LocalArchiveSink"]
