"""Application layer for Boogie.

Services sequence domain steps and delegate network and provider I/O to
adapters via port interfaces.
"""

__all__ = [
    "IngestResult",
    "IngestService",
    "SearchResponse",
    "SearchService",
]

from boogie.app.ingest_service import IngestResult, IngestService
from boogie.app.search_service import SearchResponse, SearchService
