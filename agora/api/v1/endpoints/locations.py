"""Location endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from agora.api.deps import get_db, require_user_id
from agora.core.rate_limit import limiter, RATE_LIMITS
from agora.schemas import LocationRefreshResponse, LocationWikipediaData
from agora.services.locations import get_location, refresh_location_wikipedia_data

router = APIRouter()


@router.get("/{location_id}", response_model=LocationWikipediaData)
async def get_location_endpoint(location_id: int, db: Session = Depends(get_db)):
    """Location with its cached Wikipedia data."""
    try:
        return get_location(db, location_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post(
    "/{location_id}/wikipedia-refresh",
    response_model=LocationRefreshResponse,
    dependencies=[Depends(require_user_id)],
)
@limiter.limit(RATE_LIMITS["location_refresh"])
async def refresh_wikipedia_endpoint(
    request: Request,
    location_id: int,
    force: bool = False,
    db: Session = Depends(get_db)
):
    """
    Refresh the location's image and population from Wikipedia.

    Cached data younger than WIKIPEDIA_CACHE_TTL_HOURS is kept unless
    `force=true`. Wikipedia being unreachable is not an error: the refresh
    simply finds nothing new.
    """
    try:
        location = get_location(db, location_id)
        refreshed = refresh_location_wikipedia_data(db, location, force=force)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return LocationRefreshResponse(
        refreshed=refreshed,
        location=LocationWikipediaData.model_validate(location),
    )
