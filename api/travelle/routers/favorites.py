"""
Favorite Places Endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from travelle.utils.database import get_db
from travelle.routers.auth import get_optional_session
from travelle.schemas.user import AuthSession
from travelle.schemas.collections import (
    FavoriteItem,
    FavoritesByCountry,
    FavoriteToggleResult,
    MembershipResponse,
)
from travelle.services.collections_service import FavoritesService, group_by_country

router = APIRouter()


async def get_favorites(
    db: AsyncSession = Depends(get_db),
    session: Optional[AuthSession] = Depends(get_optional_session),
) -> FavoritesService:
    return FavoritesService(db, session)


@router.get("", response_model=List[FavoriteItem])
async def list_favorites(favorites: FavoritesService = Depends(get_favorites)):
    """
    Favorites of the signed-in user; empty for anonymous callers
    """
    return await favorites.fetch_all()


@router.get("/by-country", response_model=FavoritesByCountry)
async def favorites_by_country(favorites: FavoritesService = Depends(get_favorites)):
    return group_by_country(await favorites.fetch_all())


@router.get("/{place_id}", response_model=MembershipResponse)
async def is_favorite(
    place_id: int,
    favorites: FavoritesService = Depends(get_favorites),
):
    return MembershipResponse(place_id=place_id, member=await favorites.is_favorite(place_id))


@router.put("/{place_id}", response_model=FavoriteToggleResult)
async def add_favorite(
    place_id: int,
    favorites: FavoritesService = Depends(get_favorites),
):
    success = await favorites.add(place_id)
    return FavoriteToggleResult(success=success, is_favorite=await favorites.is_favorite(place_id))


@router.delete("/{place_id}", response_model=FavoriteToggleResult)
async def remove_favorite(
    place_id: int,
    favorites: FavoritesService = Depends(get_favorites),
):
    success = await favorites.remove(place_id)
    return FavoriteToggleResult(success=success, is_favorite=await favorites.is_favorite(place_id))


@router.post("/{place_id}/toggle", response_model=FavoriteToggleResult)
async def toggle_favorite(
    place_id: int,
    favorites: FavoritesService = Depends(get_favorites),
):
    """
    Add the place if it is not a favorite, remove it if it is
    """
    return await favorites.toggle(place_id)
