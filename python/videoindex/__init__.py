"""Search index and query service for moderated videos."""
