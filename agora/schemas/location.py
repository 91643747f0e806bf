"""Location schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict


class LocationWikipediaData(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    wikipedia_url: Optional[str] = None
    wikipedia_image_url: Optional[str] = None
    population: Optional[int] = None
    wikipedia_data_updated_at: Optional[datetime] = None


class LocationRefreshResponse(BaseModel):
    refreshed: bool
    location: LocationWikipediaData
