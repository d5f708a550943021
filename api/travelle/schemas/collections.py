"""
Favorites & Visited Places Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import date


class FavoriteItem(BaseModel):
    id: int  # place id
    place: str
    city: Optional[str] = None
    country: Optional[str] = None
    price: Optional[float] = None
    rating: Optional[float] = None
    image1: Optional[str] = None
    image2: Optional[str] = None
    image3: Optional[str] = None


class VisitedItem(BaseModel):
    visit_id: int
    visit_date: Optional[date] = None
    notes: Optional[str] = ""
    place_id: int
    place: str
    price: Optional[float] = None
    rating: Optional[float] = None
    image1: Optional[str] = None
    image2: Optional[str] = None
    image3: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    flag: Optional[str] = None


class VisitUpsert(BaseModel):
    visit_date: Optional[date] = None
    notes: str = Field(default="", max_length=2000)


class MembershipResponse(BaseModel):
    place_id: int
    member: bool


class FavoriteToggleResult(BaseModel):
    success: bool
    is_favorite: bool
    favorites: List[FavoriteItem] = []


class VisitResult(BaseModel):
    success: bool
    requires_auth: bool = False
    error: Optional[str] = None


class VisitToggleResult(VisitResult):
    is_now_visited: bool = False
    visited: List[VisitedItem] = []


class MonthBucket(BaseModel):
    label: str
    items: List[VisitedItem]


FavoritesByCountry = Dict[str, List[FavoriteItem]]
VisitedByCountry = Dict[str, List[VisitedItem]]
VisitedByMonth = Dict[str, MonthBucket]
