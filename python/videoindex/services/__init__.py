"""Business logic services.

Services are called by route handlers and tasks and orchestrate database
operations against the search index.
"""

from videoindex.services.indexing import IndexOutcome, index_video, remove_video

__all__ = [
    "IndexOutcome",
    "index_video",
    "remove_video",
]
