"""Search routes.

Routes are transport-only:
- Parse query parameters
- Call exactly one service function
- Return the response body or raise ApiError

No domain logic or raw DB access in routes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from videoindex.api.deps import get_db
from videoindex.services import search as search_service

router = APIRouter()


@router.get("/search")
def search(
    db: Annotated[Session, Depends(get_db)],
    q: str | None = Query(default=None, description="Free-text search query"),
    amendments: list[str] | None = Query(
        default=None,
        description="Amendment tags (repeat or comma-separate); unknown values are ignored",
    ),
    participants: list[str] | None = Query(
        default=None,
        description="Participant tags (repeat or comma-separate); unknown values are ignored",
    ),
    state: str | None = Query(default=None, description="Primary location state"),
    bbox: str | None = Query(
        default=None, description="Bounding box as minLng,minLat,maxLng,maxLat"
    ),
    page: int = Query(default=0, ge=0, description="Zero-based page number"),
    size: int = Query(
        default=search_service.DEFAULT_PAGE_SIZE,
        ge=1,
        description="Page size (default 20, capped at 100)",
    ),
) -> dict:
    """Search approved videos.

    **Filters** (all optional, combined with AND):
    - `q` - full-text match over title and description
    - `amendments` / `participants` - match any of the given tags
    - `state` - exact primary location state
    - `bbox` - primary location inside the box (inclusive)

    **Ordering:**
    - With `q`: relevance (title matches weigh more), then most recently indexed
    - Without `q`: most recently indexed first

    Returns 400 E_INVALID_BBOX for a malformed bbox.
    """
    bounding_box = search_service.parse_bbox(bbox)

    result = search_service.search(
        db=db,
        query=q,
        amendments=amendments,
        participants=participants,
        state=state,
        bbox=bounding_box,
        page=page,
        page_size=size,
    )

    return result.model_dump(mode="json", by_alias=True)
