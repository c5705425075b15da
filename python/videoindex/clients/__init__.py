"""Clients for upstream services."""

from videoindex.clients.video_service import (
    FetchFailure,
    FetchFailureKind,
    VideoServiceClient,
    VideoServiceError,
)

__all__ = ["FetchFailure", "FetchFailureKind", "VideoServiceClient", "VideoServiceError"]
