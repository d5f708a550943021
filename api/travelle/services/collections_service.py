"""
User Collections Service - favorites and visited places
"""
import logging
from collections import defaultdict
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from travelle.errors import DataAccessFailure
from travelle.models.catalog import City, Country, Place
from travelle.models.collections import Favorite, VisitedPlace
from travelle.schemas.collections import (
    FavoriteItem,
    FavoriteToggleResult,
    MonthBucket,
    VisitedByMonth,
    VisitedItem,
    VisitResult,
    VisitToggleResult,
)
from travelle.schemas.user import AuthSession
from travelle.utils.database import commit, execute

logger = logging.getLogger(__name__)


class _GuardedCollection:
    """
    Common plumbing for per-user collections.

    Every operation is a no-op for anonymous callers. Storage failures are
    logged and kept on ``error`` instead of being raised.
    """

    def __init__(self, db: AsyncSession, session: Optional[AuthSession]):
        self.db = db
        self.session = session
        self.error: Optional[str] = None

    @property
    def user_id(self) -> Optional[int]:
        if self.session is None:
            return None
        return self.session.user.id

    def _fail(self, action: str, e: DataAccessFailure) -> None:
        logger.error(f"{type(self).__name__}.{action} failed for user {self.user_id}: {e.message}")
        self.error = e.user_message


class FavoritesService(_GuardedCollection):

    async def fetch_all(self) -> List[FavoriteItem]:
        if not self.user_id:
            return []
        try:
            result = await execute(
                self.db,
                select(
                    Place.id,
                    Place.name.label("place"),
                    Place.price,
                    Place.rating,
                    Place.image1,
                    Place.image2,
                    Place.image3,
                    City.name.label("city"),
                    Country.name.label("country"),
                )
                .join(Favorite, Favorite.place_id == Place.id)
                .outerjoin(City, Place.city_id == City.id)
                .outerjoin(Country, City.country_id == Country.id)
                .where(Favorite.user_id == self.user_id)
                .order_by(Place.name),
            )
        except DataAccessFailure as e:
            self._fail("fetch_all", e)
            return []

        return [FavoriteItem.model_validate(row._asdict()) for row in result.all()]

    async def is_favorite(self, place_id: int) -> bool:
        if not self.user_id or not place_id:
            return False
        try:
            result = await execute(
                self.db,
                select(Favorite.id).where(Favorite.user_id == self.user_id, Favorite.place_id == place_id),
            )
        except DataAccessFailure as e:
            self._fail("is_favorite", e)
            return False
        return result.first() is not None

    async def add(self, place_id: int) -> bool:
        if not self.user_id or not place_id:
            return False
        if await self.is_favorite(place_id):
            return True

        self.db.add(Favorite(user_id=self.user_id, place_id=place_id))
        try:
            await self.db.commit()
        except IntegrityError:
            # Added concurrently; the row is there either way
            await self.db.rollback()
        except SQLAlchemyError as e:
            await self.db.rollback()
            self._fail("add", DataAccessFailure(str(e)))
            return False
        return True

    async def remove(self, place_id: int) -> bool:
        if not self.user_id or not place_id:
            return False
        try:
            await execute(
                self.db,
                delete(Favorite).where(Favorite.user_id == self.user_id, Favorite.place_id == place_id),
            )
            await commit(self.db)
        except DataAccessFailure as e:
            self._fail("remove", e)
            return False
        return True

    async def toggle(self, place_id: int) -> FavoriteToggleResult:
        if not self.user_id:
            return FavoriteToggleResult(success=False, is_favorite=False)

        was_favorite = await self.is_favorite(place_id)
        if was_favorite:
            ok = await self.remove(place_id)
        else:
            ok = await self.add(place_id)

        if not ok:
            return FavoriteToggleResult(success=False, is_favorite=was_favorite)

        return FavoriteToggleResult(
            success=True,
            is_favorite=not was_favorite,
            favorites=await self.fetch_all(),
        )


class VisitedService(_GuardedCollection):

    async def fetch_all(self) -> List[VisitedItem]:
        if not self.user_id:
            return []
        try:
            result = await execute(
                self.db,
                select(
                    VisitedPlace.id.label("visit_id"),
                    VisitedPlace.visit_date,
                    VisitedPlace.notes,
                    Place.id.label("place_id"),
                    Place.name.label("place"),
                    Place.price,
                    Place.rating,
                    Place.image1,
                    Place.image2,
                    Place.image3,
                    City.name.label("city"),
                    Country.name.label("country"),
                    Country.flag,
                )
                .join(Place, VisitedPlace.place_id == Place.id)
                .outerjoin(City, Place.city_id == City.id)
                .outerjoin(Country, City.country_id == Country.id)
                .where(VisitedPlace.user_id == self.user_id)
                .order_by(VisitedPlace.visit_date.desc(), VisitedPlace.id.desc()),
            )
        except DataAccessFailure as e:
            self._fail("fetch_all", e)
            return []

        return [VisitedItem.model_validate(row._asdict()) for row in result.all()]

    async def is_visited(self, place_id: int) -> bool:
        if not self.user_id or not place_id:
            return False
        try:
            result = await execute(
                self.db,
                select(VisitedPlace.id).where(
                    VisitedPlace.user_id == self.user_id,
                    VisitedPlace.place_id == place_id,
                ),
            )
        except DataAccessFailure as e:
            self._fail("is_visited", e)
            return False
        return result.first() is not None

    async def add(self, place_id: int, visit_date: Optional[date] = None, notes: str = "") -> VisitResult:
        """Mark a place as visited, or update the date and notes of an existing visit"""
        if not self.user_id:
            return VisitResult(success=False, requires_auth=True)
        if not place_id:
            return VisitResult(success=False, error="Missing place id")

        visit_date = visit_date or date.today()
        try:
            result = await execute(
                self.db,
                select(VisitedPlace).where(
                    VisitedPlace.user_id == self.user_id,
                    VisitedPlace.place_id == place_id,
                ),
            )
            visit = result.scalar_one_or_none()
            if visit is None:
                self.db.add(VisitedPlace(
                    user_id=self.user_id,
                    place_id=place_id,
                    visit_date=visit_date,
                    notes=notes,
                ))
            else:
                visit.visit_date = visit_date
                visit.notes = notes
            await commit(self.db)
        except DataAccessFailure as e:
            self._fail("add", e)
            return VisitResult(success=False, error=self.error)

        return VisitResult(success=True)

    async def remove(self, place_id: int) -> VisitResult:
        if not self.user_id:
            return VisitResult(success=False, requires_auth=True)
        try:
            await execute(
                self.db,
                delete(VisitedPlace).where(
                    VisitedPlace.user_id == self.user_id,
                    VisitedPlace.place_id == place_id,
                ),
            )
            await commit(self.db)
        except DataAccessFailure as e:
            self._fail("remove", e)
            return VisitResult(success=False, error=self.error)
        return VisitResult(success=True)

    async def toggle(self, place_id: int, visit_date: Optional[date] = None, notes: str = "") -> VisitToggleResult:
        if not self.user_id:
            return VisitToggleResult(success=False, requires_auth=True)

        was_visited = await self.is_visited(place_id)
        if was_visited:
            outcome = await self.remove(place_id)
        else:
            outcome = await self.add(place_id, visit_date, notes)

        if not outcome.success:
            return VisitToggleResult(success=False, error=outcome.error, is_now_visited=was_visited)

        return VisitToggleResult(
            success=True,
            is_now_visited=not was_visited,
            visited=await self.fetch_all(),
        )


def group_by_country(items: Iterable) -> dict:
    """Bucket favorites or visits by country name, keys sorted alphabetically"""
    groups = defaultdict(list)
    for item in items:
        if not item.country:
            continue
        groups[item.country].append(item)
    return {country: groups[country] for country in sorted(groups)}


def group_by_month(items: Iterable[VisitedItem]) -> VisitedByMonth:
    """Bucket visits by YYYY-MM, most recent month first"""
    groups = defaultdict(list)
    for item in items:
        if not item.visit_date:
            continue
        groups[item.visit_date.strftime("%Y-%m")].append(item)

    return {
        key: MonthBucket(label=groups[key][0].visit_date.strftime("%B %Y"), items=groups[key])
        for key in sorted(groups, reverse=True)
    }
