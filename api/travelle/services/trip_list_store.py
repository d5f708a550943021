"""
Trip List Store - per-user packing checklists kept as one Redis document
"""
import logging
from datetime import date, timedelta
from typing import List, Optional, Tuple

import orjson
import redis.asyncio as redis
from pydantic import ValidationError
from redis.exceptions import RedisError, WatchError

from travelle.config import settings
from travelle.errors import DataAccessFailure, StorageCorruption, VersionConflict
from travelle.schemas.trip_list import (
    ItemCategory,
    RepairResult,
    TripItem,
    TripList,
    TripListDocument,
)
from travelle.schemas.user import AuthSession
from travelle.utils.redis import trip_lists_key

logger = logging.getLogger(__name__)

ITEM_CATEGORIES: List[ItemCategory] = [
    ItemCategory(id="documents", name="Documents", icon="file-text"),
    ItemCategory(id="clothing", name="Clothing", icon="shirt"),
    ItemCategory(id="electronics", name="Electronics", icon="mobile-alt"),
    ItemCategory(id="hygiene", name="Hygiene", icon="droplet"),
    ItemCategory(id="medication", name="Medication", icon="pills"),
    ItemCategory(id="other", name="Other", icon="box"),
]

UNCATEGORIZED = ItemCategory(id="other", name="Uncategorized", icon="package")

LIST_NOT_FOUND = "List not found"
ITEM_NOT_FOUND = "Item not found"
INVALID_CHANGES = "Invalid field values"

PROTECTED_LIST_FIELDS = {"id", "items", "created_at"}
PROTECTED_ITEM_FIELDS = {"id", "created_at"}


def get_category(category_id: str) -> ItemCategory:
    for category in ITEM_CATEGORIES:
        if category.id == category_id:
            return category
    return UNCATEGORIZED


def parse_document(raw: Optional[str]) -> TripListDocument:
    """
    Decode a stored collection.

    Accepts the versioned document and the bare JSON array written by older
    clients (read as version 0). Raises StorageCorruption for anything else.
    """
    if not raw:
        return TripListDocument()
    try:
        data = orjson.loads(raw)
        if isinstance(data, list):
            return TripListDocument(version=0, lists=data)
        if isinstance(data, dict):
            return TripListDocument.model_validate(data)
    except (orjson.JSONDecodeError, ValidationError) as e:
        raise StorageCorruption(str(e)) from e
    raise StorageCorruption(f"Expected a list document, got {type(data).__name__}")


def _stored_version(raw: Optional[str]) -> int:
    try:
        return parse_document(raw).version
    except StorageCorruption:
        return 0


class TripListStore:
    """
    Loads, mutates and saves one user's trip lists.

    Every mutation writes the whole collection right away. Saves are
    optimistic: the document carries a version, and a save is refused when
    the stored version moved since load(). Nothing here raises; failures
    leave a message on ``error`` and come back as falsy results.
    """

    def __init__(self, client: redis.Redis, session: Optional[AuthSession]):
        self.client = client
        self.session = session
        self.lists: List[TripList] = []
        self.version = 0
        self.error: Optional[str] = None
        self.conflict = False

    @property
    def key(self) -> Optional[str]:
        if self.session is None:
            return None
        return trip_lists_key(self.session.user.id)

    def _require_session(self) -> bool:
        if self.session is None:
            self.error = "You must sign in to manage trip lists"
            return False
        return True

    async def load(self) -> List[TripList]:
        self.error = None
        self.conflict = False
        self.lists = []
        self.version = 0

        if self.session is None:
            logger.debug("No session, trip lists not loaded")
            return self.lists

        try:
            raw = await self.client.get(self.key)
        except RedisError as e:
            failure = DataAccessFailure(str(e))
            logger.error(f"Could not read {self.key}: {e}")
            self.error = failure.user_message
            return self.lists

        try:
            document = parse_document(raw)
        except StorageCorruption as e:
            logger.error(f"Unreadable trip lists under {self.key}: {e.message}")
            self.error = e.user_message
            return self.lists

        self.lists = document.lists
        self.version = document.version
        logger.debug(f"Loaded {len(self.lists)} trip lists from {self.key} (version {self.version})")
        return self.lists

    async def save(self) -> bool:
        if not self._require_session():
            return False

        document = TripListDocument(version=self.version + 1, lists=self.lists)
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                await pipe.watch(self.key)
                current = _stored_version(await pipe.get(self.key))
                if current != self.version:
                    raise VersionConflict(f"{self.key} is at version {current}, loaded {self.version}")
                pipe.multi()
                pipe.set(self.key, document.model_dump_json())
                await pipe.execute()
        except (VersionConflict, WatchError) as e:
            conflict = e if isinstance(e, VersionConflict) else VersionConflict(str(e))
            logger.warning(f"Trip list save rejected: {conflict.message}")
            self.conflict = True
            self.error = conflict.user_message
            return False
        except RedisError as e:
            logger.error(f"Could not write {self.key}: {e}")
            self.error = DataAccessFailure(str(e)).user_message
            return False

        self.version = document.version
        logger.debug(f"Saved {len(self.lists)} trip lists to {self.key} (version {self.version})")
        return True

    # Lists

    async def create_list(
        self,
        name: str,
        destination: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Optional[TripList]:
        if not self._require_session():
            return None

        trip_list = TripList(name=name, destination=destination, start_date=start_date, end_date=end_date)
        self.lists.append(trip_list)
        if not await self.save():
            self.lists.remove(trip_list)
            return None
        return trip_list

    def get_list(self, list_id: str) -> Optional[TripList]:
        for trip_list in self.lists:
            if trip_list.id == list_id:
                return trip_list
        logger.debug(f"No trip list with id {list_id}")
        return None

    def _index(self, list_id: str) -> int:
        for index, trip_list in enumerate(self.lists):
            if trip_list.id == list_id:
                return index
        self.error = LIST_NOT_FOUND
        return -1

    async def update_list(self, list_id: str, **fields) -> Optional[TripList]:
        """Shallow-merge fields into a list; id, items and created_at are kept"""
        index = self._index(list_id)
        if index == -1:
            return None

        current = self.lists[index]
        changes = {k: v for k, v in fields.items() if k not in PROTECTED_LIST_FIELDS}
        try:
            updated = TripList.model_validate({**current.model_dump(), **changes})
        except ValidationError as e:
            logger.debug(f"Rejected update for list {list_id}: {e}")
            self.error = INVALID_CHANGES
            return None

        self.lists[index] = updated
        if not await self.save():
            self.lists[index] = current
            return None
        return updated

    async def delete_list(self, list_id: str) -> bool:
        index = self._index(list_id)
        if index == -1:
            return False

        removed = self.lists.pop(index)
        if not await self.save():
            self.lists.insert(index, removed)
            return False
        return True

    # Items

    def _find_item(self, list_id: str, item_id: str) -> Tuple[Optional[TripList], int]:
        trip_list = self.get_list(list_id)
        if trip_list is None:
            self.error = LIST_NOT_FOUND
            return None, -1
        for index, item in enumerate(trip_list.items):
            if item.id == item_id:
                return trip_list, index
        self.error = ITEM_NOT_FOUND
        return trip_list, -1

    async def add_item(
        self,
        list_id: str,
        text: str,
        category: str = "other",
        priority: int = 2,
        notes: str = "",
    ) -> Optional[TripItem]:
        trip_list = self.get_list(list_id)
        if trip_list is None:
            self.error = LIST_NOT_FOUND
            return None

        item = TripItem(text=text, category=category or "other", priority=priority, notes=notes)
        trip_list.items.append(item)
        if not await self.save():
            trip_list.items.remove(item)
            return None
        return item

    async def update_item(self, list_id: str, item_id: str, **fields) -> Optional[TripItem]:
        trip_list, index = self._find_item(list_id, item_id)
        if index == -1:
            return None

        current = trip_list.items[index]
        changes = {k: v for k, v in fields.items() if k not in PROTECTED_ITEM_FIELDS}
        try:
            updated = TripItem.model_validate({**current.model_dump(), **changes})
        except ValidationError as e:
            logger.debug(f"Rejected update for item {item_id}: {e}")
            self.error = INVALID_CHANGES
            return None

        trip_list.items[index] = updated
        if not await self.save():
            trip_list.items[index] = current
            return None
        return updated

    async def delete_item(self, list_id: str, item_id: str) -> bool:
        trip_list, index = self._find_item(list_id, item_id)
        if index == -1:
            return False

        removed = trip_list.items.pop(index)
        if not await self.save():
            trip_list.items.insert(index, removed)
            return False
        return True

    async def toggle_item(self, list_id: str, item_id: str) -> Optional[TripItem]:
        trip_list, index = self._find_item(list_id, item_id)
        if index == -1:
            return None

        item = trip_list.items[index]
        item.completed = not item.completed
        if not await self.save():
            item.completed = not item.completed
            return None
        return item

    # Derived views

    def sorted_lists(self) -> List[TripList]:
        """Soonest trip first; lists without a start date go last"""
        return sorted(self.lists, key=lambda t: (t.start_date is None, t.start_date or date.max))

    def upcoming_lists(self, today: Optional[date] = None) -> List[TripList]:
        today = today or date.today()
        horizon = today + timedelta(days=settings.UPCOMING_TRIP_DAYS)
        return [
            t for t in self.sorted_lists()
            if t.start_date is not None and today <= t.start_date <= horizon
        ]

    # Maintenance

    async def repair(self) -> RepairResult:
        """
        Make sure the user's canonical key holds a readable collection.

        Lists saved under the legacy email-based key are copied over when
        the canonical key has none; otherwise an empty collection is written.
        """
        if self.session is None:
            return RepairResult(success=False, reason="user-not-authenticated")

        await self.load()
        if self.lists:
            return RepairResult(
                success=True,
                message="Data found and verified",
                key=self.key,
                total_lists=len(self.lists),
            )

        legacy_key = trip_lists_key(self.session.user.email)
        try:
            legacy = parse_document(await self.client.get(legacy_key)).lists
        except StorageCorruption:
            logger.warning(f"Ignoring unreadable legacy trip lists under {legacy_key}")
            legacy = []
        except RedisError as e:
            logger.error(f"Could not read {legacy_key}: {e}")
            legacy = []

        self.lists = legacy
        if not await self.save():
            return RepairResult(
                success=False,
                reason="copy-failed" if legacy else "init-failed",
                key=self.key,
                error=self.error,
            )

        self.error = None
        if legacy:
            logger.info(f"Recovered {len(legacy)} trip lists from {legacy_key}")
            return RepairResult(
                success=True,
                message="Data found and verified",
                key=self.key,
                total_lists=len(legacy),
            )

        return RepairResult(success=True, message="Created an empty structure", key=self.key)
