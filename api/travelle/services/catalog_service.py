"""
Catalog Query Service - read-only lookups over countries, cities and places
"""
import logging
import math
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from travelle.config import settings
from travelle.models.catalog import Category, City, Country, Place, place_categories
from travelle.schemas.catalog import (
    CityBase,
    CityResponse,
    CountryResponse,
    CountryWithCities,
    NearbyPlace,
    PlaceDetail,
    PlaceResponse,
    PlaceSummary,
    SearchResult,
)
from travelle.utils.database import execute

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE_LAT = 111.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in kilometres"""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def bounding_box(latitude: float, longitude: float, radius_km: float) -> tuple:
    """
    Lat/lng box enclosing the search circle: (min_lat, max_lat, min_lon, max_lon).

    Near the poles the longitude span covers the whole globe.
    """
    lat_delta = radius_km / KM_PER_DEGREE_LAT
    cos_lat = math.cos(math.radians(latitude))
    if cos_lat < 1e-6:
        lon_delta = 180.0
    else:
        lon_delta = min(radius_km / (KM_PER_DEGREE_LAT * cos_lat), 180.0)
    return latitude - lat_delta, latitude + lat_delta, longitude - lon_delta, longitude + lon_delta


def longitude_ranges(min_lon: float, max_lon: float) -> List[tuple]:
    """
    Split a longitude span into ranges inside [-180, 180].

    A span crossing the antimeridian becomes two ranges; a span of a full
    turn or more needs no longitude filter and yields an empty list.
    """
    if max_lon - min_lon >= 360.0:
        return []
    if min_lon < -180.0:
        return [(min_lon + 360.0, 180.0), (-180.0, max_lon)]
    if max_lon > 180.0:
        return [(min_lon, 180.0), (-180.0, max_lon - 360.0)]
    return [(min_lon, max_lon)]


def _summary_columns():
    """Place columns joined with city and country names"""
    return (
        Place,
        City.name.label("city"),
        Country.id.label("country_id"),
        Country.name.label("country"),
        Country.flag.label("flag"),
    )


def _to_summary(row, model=PlaceSummary, **extra):
    place = row.Place
    base = PlaceResponse.model_validate(place).model_dump()
    return model(
        **base,
        city=row.city,
        country=row.country,
        country_id=row.country_id,
        flag=row.flag,
        **extra,
    )


class CatalogService:
    """
    Side-effect-free queries over the reference catalog.

    Nothing is cached; driver errors surface as DataAccessFailure.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    def _joined(self):
        return (
            select(*_summary_columns())
            .join(City, Place.city_id == City.id)
            .join(Country, City.country_id == Country.id)
        )

    # Countries & cities

    async def list_countries(self) -> List[CountryResponse]:
        result = await execute(self.db, select(Country).order_by(Country.name))
        return [CountryResponse.model_validate(c) for c in result.scalars().all()]

    async def get_country(self, country_id: int) -> Optional[CountryResponse]:
        result = await execute(self.db, select(Country).where(Country.id == country_id))
        country = result.scalar_one_or_none()
        return CountryResponse.model_validate(country) if country else None

    async def list_countries_with_cities(self) -> List[CountryWithCities]:
        result = await execute(
            self.db,
            select(
                Country.id.label("country_id"),
                Country.name.label("country"),
                Country.flag,
                City.id.label("city_id"),
                City.name.label("city"),
            )
            .outerjoin(City, City.country_id == Country.id)
            .order_by(Country.name, City.name),
        )

        countries: dict[int, CountryWithCities] = {}
        for row in result.all():
            country = countries.get(row.country_id)
            if country is None:
                country = CountryWithCities(id=row.country_id, name=row.country, flag=row.flag, cities=[])
                countries[row.country_id] = country
            if row.city_id is not None:
                country.cities.append(CityBase(id=row.city_id, name=row.city))

        return list(countries.values())

    async def list_cities(self) -> List[CityResponse]:
        result = await execute(self.db, select(City).order_by(City.name))
        return [CityResponse.model_validate(c) for c in result.scalars().all()]

    # Places

    async def list_places_by_city(self, city_id: Optional[int]) -> List[PlaceResponse]:
        if not city_id:
            logger.warning(f"Invalid city id: {city_id!r}")
            return []

        result = await execute(
            self.db,
            select(Place).where(Place.city_id == city_id).order_by(Place.name),
        )
        return [PlaceResponse.model_validate(p) for p in result.scalars().all()]

    async def list_all_places(self) -> List[PlaceSummary]:
        result = await execute(
            self.db,
            self._joined().order_by(Country.name, City.name, Place.name),
        )
        return [_to_summary(row) for row in result.all()]

    async def get_place(self, place_id: int) -> Optional[PlaceResponse]:
        result = await execute(self.db, select(Place).where(Place.id == place_id))
        place = result.scalar_one_or_none()
        return PlaceResponse.model_validate(place) if place else None

    async def get_place_categories(self, place_id: int) -> List[str]:
        result = await execute(
            self.db,
            select(Category.name)
            .join(place_categories, place_categories.c.category_id == Category.id)
            .where(place_categories.c.place_id == place_id)
            .order_by(Category.name),
        )
        return list(result.scalars().all())

    async def get_city_name_for_place(self, place_id: int) -> str:
        result = await execute(
            self.db,
            select(City.name).join(Place, Place.city_id == City.id).where(Place.id == place_id),
        )
        return result.scalar_one_or_none() or ""

    async def search(self, text: str) -> List[SearchResult]:
        """Case-insensitive substring match over country, city and place names"""
        pattern = f"%{text.lower()}%"
        result = await execute(
            self.db,
            select(
                Country.id.label("country_id"),
                Country.name.label("country"),
                Country.flag,
                City.id.label("city_id"),
                City.name.label("city"),
                Place.id.label("place_id"),
                Place.name.label("place"),
            )
            .outerjoin(City, City.country_id == Country.id)
            .outerjoin(Place, Place.city_id == City.id)
            .where(or_(
                func.lower(Country.name).like(pattern),
                func.lower(City.name).like(pattern),
                func.lower(Place.name).like(pattern),
            ))
            .order_by(Country.name, City.name, Place.name),
        )

        return [
            SearchResult(
                id=row.place_id or row.city_id or row.country_id,
                country=row.country,
                flag=row.flag,
                city=row.city,
                place=row.place,
            )
            for row in result.all()
        ]

    async def random_places(self, count: int = 6) -> List[PlaceSummary]:
        result = await execute(self.db, self._joined().order_by(func.random()).limit(count))
        return [_to_summary(row) for row in result.all()]

    async def nearby_places(
        self,
        latitude: float,
        longitude: float,
        radius_km: float = settings.NEARBY_DEFAULT_RADIUS_KM,
    ) -> List[NearbyPlace]:
        """
        Places within radius_km of the point, nearest first.

        The box filter runs in SQL; exact great-circle distances are computed
        for the candidates and anything outside the circle is dropped.
        """
        min_lat, max_lat, min_lon, max_lon = bounding_box(latitude, longitude, radius_km)

        query = self._joined().where(Place.latitude.between(min_lat, max_lat))
        lon_ranges = longitude_ranges(min_lon, max_lon)
        if lon_ranges:
            query = query.where(or_(*[Place.longitude.between(low, high) for low, high in lon_ranges]))

        result = await execute(self.db, query)

        nearby = []
        for row in result.all():
            place = row.Place
            distance = haversine_km(latitude, longitude, place.latitude, place.longitude)
            if distance <= radius_km:
                nearby.append(_to_summary(row, NearbyPlace, distance_km=round(distance, 3)))

        nearby.sort(key=lambda p: p.distance_km)
        logger.debug(f"Nearby search ({latitude}, {longitude}, {radius_km}km): {len(nearby)} places")
        return nearby[:settings.NEARBY_MAX_RESULTS]

    async def find_place(self, name: str, city: str, country: str) -> Optional[PlaceDetail]:
        """Exact lookup by place, city and country name"""
        result = await execute(
            self.db,
            self._joined()
            .where(Place.name == name, City.name == city, Country.name == country)
            .limit(1),
        )
        row = result.first()
        if row is None:
            return None
        return _to_summary(row, PlaceDetail, images=row.Place.images)
