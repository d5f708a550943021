"""
Country, City & Search Endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from travelle.utils.database import get_db
from travelle.schemas.catalog import (
    CityResponse,
    CountryResponse,
    CountryWithCities,
    PlaceResponse,
    SearchResult,
)
from travelle.services.catalog_service import CatalogService

router = APIRouter()
logger = logging.getLogger(__name__)


async def get_catalog(db: AsyncSession = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


@router.get("/countries", response_model=List[CountryResponse])
async def list_countries(catalog: CatalogService = Depends(get_catalog)):
    return await catalog.list_countries()


@router.get("/countries/with-cities", response_model=List[CountryWithCities])
async def list_countries_with_cities(catalog: CatalogService = Depends(get_catalog)):
    """
    Every country with its cities, for the destination picker
    """
    return await catalog.list_countries_with_cities()


@router.get("/countries/{country_id}", response_model=CountryResponse)
async def get_country(
    country_id: int,
    catalog: CatalogService = Depends(get_catalog),
):
    country = await catalog.get_country(country_id)
    if not country:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Country not found"
        )
    return country


@router.get("/cities", response_model=List[CityResponse])
async def list_cities(catalog: CatalogService = Depends(get_catalog)):
    return await catalog.list_cities()


@router.get("/cities/{city_id}/places", response_model=List[PlaceResponse])
async def list_city_places(
    city_id: int,
    catalog: CatalogService = Depends(get_catalog),
):
    return await catalog.list_places_by_city(city_id)


@router.get("/search", response_model=List[SearchResult])
async def search(
    q: str = Query(..., min_length=1, description="Country, city or place name"),
    catalog: CatalogService = Depends(get_catalog),
):
    """
    Case-insensitive search across countries, cities and places
    """
    return await catalog.search(q)
