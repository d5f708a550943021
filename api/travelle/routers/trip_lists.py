"""
Trip List (packing checklist) Endpoints
"""
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response, status
from typing import List, Optional
from datetime import date
import redis.asyncio as redis
import logging

from travelle.errors import DataAccessFailure, VersionConflict
from travelle.utils.redis import get_redis
from travelle.routers.auth import get_current_session
from travelle.schemas.user import AuthSession
from travelle.schemas.trip_list import (
    ItemCategory,
    RepairResult,
    ReminderRunResult,
    TripItem,
    TripItemCreate,
    TripItemUpdate,
    TripListCreate,
    TripListResponse,
    TripListUpdate,
)
from travelle.services.notification_service import NotificationService, get_notification_service
from travelle.services.trip_list_store import (
    ITEM_CATEGORIES,
    INVALID_CHANGES,
    ITEM_NOT_FOUND,
    LIST_NOT_FOUND,
    TripListStore,
)
from travelle.services.trip_reminders import TripReminderEvaluator

router = APIRouter()
logger = logging.getLogger(__name__)


async def get_trip_store(
    session: AuthSession = Depends(get_current_session),
    client: redis.Redis = Depends(get_redis),
    if_match: Optional[str] = Header(None),
) -> TripListStore:
    """
    Load the caller's trip lists. A request carrying If-Match is refused
    when the stored version has moved on.
    """
    store = TripListStore(client, session)
    await store.load()
    if if_match is not None and if_match.strip('"') != str(store.version):
        raise HTTPException(
            status_code=status.HTTP_412_PRECONDITION_FAILED,
            detail="Trip lists changed since they were read"
        )
    return store


def _tag(response: Response, store: TripListStore) -> None:
    response.headers["ETag"] = f'"{store.version}"'


def _raise_for(store: TripListStore):
    """Turn a failed store mutation into the matching HTTP error"""
    if store.conflict:
        raise VersionConflict(store.error or "")
    if store.error in (LIST_NOT_FOUND, ITEM_NOT_FOUND):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=store.error
        )
    if store.error == INVALID_CHANGES:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=store.error
        )
    raise DataAccessFailure(store.error or "Trip lists could not be saved")


@router.get("", response_model=List[TripListResponse])
async def list_trip_lists(
    response: Response,
    store: TripListStore = Depends(get_trip_store),
):
    """
    All trip lists, soonest departure first
    """
    _tag(response, store)
    return [TripListResponse.from_trip_list(t) for t in store.sorted_lists()]


@router.post("", response_model=TripListResponse, status_code=status.HTTP_201_CREATED)
async def create_trip_list(
    body: TripListCreate,
    response: Response,
    store: TripListStore = Depends(get_trip_store),
):
    trip_list = await store.create_list(body.name, body.destination, body.start_date, body.end_date)
    if trip_list is None:
        _raise_for(store)

    logger.info(f"Trip list created: {trip_list.id} by user {store.session.user.id}")
    _tag(response, store)
    return TripListResponse.from_trip_list(trip_list)


@router.get("/categories", response_model=List[ItemCategory])
async def list_item_categories():
    return ITEM_CATEGORIES


@router.get("/upcoming", response_model=List[TripListResponse])
async def upcoming_trip_lists(
    response: Response,
    store: TripListStore = Depends(get_trip_store),
):
    """
    Lists whose trip starts within the next 30 days
    """
    _tag(response, store)
    return [TripListResponse.from_trip_list(t) for t in store.upcoming_lists()]


@router.post("/reminders/check", response_model=ReminderRunResult)
async def check_trip_reminders(
    today: Optional[date] = Query(None, description="Evaluate as of this date"),
    session: AuthSession = Depends(get_current_session),
    store: TripListStore = Depends(get_trip_store),
    notifications: NotificationService = Depends(get_notification_service),
):
    """
    Send the reminder and congratulations emails due for the caller's trips
    """
    evaluator = TripReminderEvaluator(store, notifications)
    return await evaluator.check_trips_and_notify(session, today)


@router.post("/repair", response_model=RepairResult)
async def repair_trip_lists(store: TripListStore = Depends(get_trip_store)):
    """
    Recover lists stored under the legacy key, or reset unreadable data
    """
    return await store.repair()


@router.get("/{list_id}", response_model=TripListResponse)
async def get_trip_list(
    list_id: str,
    response: Response,
    store: TripListStore = Depends(get_trip_store),
):
    trip_list = store.get_list(list_id)
    if trip_list is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=LIST_NOT_FOUND
        )
    _tag(response, store)
    return TripListResponse.from_trip_list(trip_list)


@router.patch("/{list_id}", response_model=TripListResponse)
async def update_trip_list(
    list_id: str,
    body: TripListUpdate,
    response: Response,
    store: TripListStore = Depends(get_trip_store),
):
    trip_list = await store.update_list(list_id, **body.model_dump(exclude_unset=True))
    if trip_list is None:
        _raise_for(store)
    _tag(response, store)
    return TripListResponse.from_trip_list(trip_list)


@router.delete("/{list_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_trip_list(
    list_id: str,
    store: TripListStore = Depends(get_trip_store),
):
    if not await store.delete_list(list_id):
        _raise_for(store)
    logger.info(f"Trip list deleted: {list_id}")


# Items

@router.post("/{list_id}/items", response_model=TripItem, status_code=status.HTTP_201_CREATED)
async def add_trip_item(
    list_id: str,
    body: TripItemCreate,
    response: Response,
    store: TripListStore = Depends(get_trip_store),
):
    item = await store.add_item(list_id, body.text, body.category, body.priority, body.notes)
    if item is None:
        _raise_for(store)
    _tag(response, store)
    return item


@router.patch("/{list_id}/items/{item_id}", response_model=TripItem)
async def update_trip_item(
    list_id: str,
    item_id: str,
    body: TripItemUpdate,
    response: Response,
    store: TripListStore = Depends(get_trip_store),
):
    item = await store.update_item(list_id, item_id, **body.model_dump(exclude_unset=True))
    if item is None:
        _raise_for(store)
    _tag(response, store)
    return item


@router.delete("/{list_id}/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_trip_item(
    list_id: str,
    item_id: str,
    store: TripListStore = Depends(get_trip_store),
):
    if not await store.delete_item(list_id, item_id):
        _raise_for(store)


@router.post("/{list_id}/items/{item_id}/toggle", response_model=TripItem)
async def toggle_trip_item(
    list_id: str,
    item_id: str,
    response: Response,
    store: TripListStore = Depends(get_trip_store),
):
    """
    Flip an item between packed and pending
    """
    item = await store.toggle_item(list_id, item_id)
    if item is None:
        _raise_for(store)
    _tag(response, store)
    return item
