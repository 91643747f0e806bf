"""Location business logic."""
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from agora.core.config import settings
from agora.core.logging_config import get_logger
from agora.core.utils import slugify, to_utc, utcnow
from agora.db.models import Location
from agora.services.wikipedia import WikipediaData, fetch_wikipedia_data

logger = get_logger(__name__)


def create_location(db: Session, name: str, wikipedia_url: Optional[str] = None) -> Location:
    """Create a location with a unique slug derived from its name."""
    name = (name or "").strip()
    if not name:
        raise ValueError("Location name cannot be empty")

    slug = slugify(name)
    if not slug:
        raise ValueError("Location name must contain letters or numbers")
    if db.query(Location).filter(Location.slug == slug).first():
        raise ValueError("Location with this name already exists")

    location = Location(name=name, slug=slug, wikipedia_url=wikipedia_url)
    db.add(location)
    db.commit()
    db.refresh(location)
    return location


def get_location(db: Session, location_id: int) -> Location:
    location = db.query(Location).filter(Location.id == location_id).first()
    if not location:
        raise LookupError("Location not found")
    return location


def is_wikipedia_data_fresh(location: Location, now: Optional[datetime] = None) -> bool:
    """True while the cached Wikipedia data is younger than the cache TTL."""
    if location.wikipedia_data_updated_at is None:
        return False
    now = to_utc(now) if now is not None else utcnow()
    age = now - to_utc(location.wikipedia_data_updated_at)
    return age < timedelta(hours=settings.WIKIPEDIA_CACHE_TTL_HOURS)


def refresh_location_wikipedia_data(
    db: Session,
    location: Location,
    fetcher: Optional[Callable[[Optional[str]], WikipediaData]] = None,
    now: Optional[datetime] = None,
    force: bool = False,
) -> bool:
    """
    Refresh a location's cached Wikipedia image and population.

    One fetch, one commit. A population the extractor could not find leaves
    the stored value alone instead of overwriting it.

    Returns:
        True if a fetch happened, False if the cached data was still fresh
    """
    if not location.wikipedia_url:
        raise ValueError("Location has no Wikipedia URL")

    if not force and is_wikipedia_data_fresh(location, now):
        return False

    fetcher = fetcher or fetch_wikipedia_data
    data = fetcher(location.wikipedia_url)

    if data.image_url:
        location.wikipedia_image_url = data.image_url
    if data.population is not None:
        location.population = data.population
    location.wikipedia_data_updated_at = to_utc(now) if now is not None else utcnow()

    db.commit()
    db.refresh(location)

    logger.info(
        "location_wikipedia_refreshed",
        location_id=location.id,
        population_found=data.population is not None,
        image_found=data.image_url is not None,
    )
    return True
