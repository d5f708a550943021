"""
Place Endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import List

from travelle.config import settings
from travelle.routers.countries import get_catalog
from travelle.schemas.catalog import NearbyPlace, PlaceDetail, PlaceResponse, PlaceSummary
from travelle.services.catalog_service import CatalogService

router = APIRouter()


@router.get("", response_model=List[PlaceSummary])
async def list_places(catalog: CatalogService = Depends(get_catalog)):
    """
    All places with their city and country
    """
    return await catalog.list_all_places()


@router.get("/random", response_model=List[PlaceSummary])
async def random_places(
    count: int = Query(6, ge=1, le=50),
    catalog: CatalogService = Depends(get_catalog),
):
    return await catalog.random_places(count)


@router.get("/nearby", response_model=List[NearbyPlace])
async def nearby_places(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(settings.NEARBY_DEFAULT_RADIUS_KM, gt=0, le=20000),
    catalog: CatalogService = Depends(get_catalog),
):
    """
    Places within radius_km of a point, nearest first
    """
    return await catalog.nearby_places(lat, lng, radius_km)


@router.get("/lookup", response_model=PlaceDetail)
async def find_place(
    name: str = Query(..., min_length=1),
    city: str = Query(..., min_length=1),
    country: str = Query(..., min_length=1),
    catalog: CatalogService = Depends(get_catalog),
):
    """
    Find a place by its name, city and country
    """
    place = await catalog.find_place(name, city, country)
    if not place:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Place not found"
        )
    return place


@router.get("/{place_id}", response_model=PlaceResponse)
async def get_place(
    place_id: int,
    catalog: CatalogService = Depends(get_catalog),
):
    place = await catalog.get_place(place_id)
    if not place:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Place not found"
        )
    return place


@router.get("/{place_id}/categories", response_model=List[str])
async def get_place_categories(
    place_id: int,
    catalog: CatalogService = Depends(get_catalog),
):
    return await catalog.get_place_categories(place_id)


@router.get("/{place_id}/city")
async def get_place_city(
    place_id: int,
    catalog: CatalogService = Depends(get_catalog),
):
    return {"place_id": place_id, "city": await catalog.get_city_name_for_place(place_id)}
