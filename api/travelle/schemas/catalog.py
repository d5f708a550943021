"""
Catalog Schemas - Countries, Cities, Places
"""
from pydantic import BaseModel
from typing import Optional, List


class CityBase(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class CityResponse(CityBase):
    country_id: int


class CountryResponse(BaseModel):
    id: int
    name: str
    flag: Optional[str] = None

    class Config:
        from_attributes = True


class CountryWithCities(CountryResponse):
    cities: List[CityBase] = []


class PlaceResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: Optional[float] = None
    rating: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    image1: Optional[str] = None
    image2: Optional[str] = None
    image3: Optional[str] = None
    city_id: Optional[int] = None

    class Config:
        from_attributes = True


class PlaceSummary(PlaceResponse):
    """Place joined with its city and country"""
    city: Optional[str] = None
    country: Optional[str] = None
    country_id: Optional[int] = None
    flag: Optional[str] = None


class NearbyPlace(PlaceSummary):
    distance_km: float


class PlaceDetail(PlaceSummary):
    """Place looked up by name tuple, with images collapsed into a list"""
    images: List[str] = []


class SearchResult(BaseModel):
    """Search hit - id is the most specific id available (place, city, country)"""
    id: int
    country: str
    flag: Optional[str] = None
    city: Optional[str] = None
    place: Optional[str] = None
