"""
Visited Places Endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from travelle.utils.database import get_db
from travelle.routers.auth import get_optional_session
from travelle.schemas.user import AuthSession
from travelle.schemas.collections import (
    MembershipResponse,
    VisitedByCountry,
    VisitedByMonth,
    VisitedItem,
    VisitResult,
    VisitToggleResult,
    VisitUpsert,
)
from travelle.services.collections_service import VisitedService, group_by_country, group_by_month

router = APIRouter()


async def get_visited(
    db: AsyncSession = Depends(get_db),
    session: Optional[AuthSession] = Depends(get_optional_session),
) -> VisitedService:
    return VisitedService(db, session)


@router.get("", response_model=List[VisitedItem])
async def list_visited(visited: VisitedService = Depends(get_visited)):
    """
    Visited places of the signed-in user, most recent visit first
    """
    return await visited.fetch_all()


@router.get("/by-country", response_model=VisitedByCountry)
async def visited_by_country(visited: VisitedService = Depends(get_visited)):
    return group_by_country(await visited.fetch_all())


@router.get("/by-month", response_model=VisitedByMonth)
async def visited_by_month(visited: VisitedService = Depends(get_visited)):
    return group_by_month(await visited.fetch_all())


@router.get("/{place_id}", response_model=MembershipResponse)
async def is_visited(
    place_id: int,
    visited: VisitedService = Depends(get_visited),
):
    return MembershipResponse(place_id=place_id, member=await visited.is_visited(place_id))


@router.put("/{place_id}", response_model=VisitResult)
async def mark_visited(
    place_id: int,
    visit: Optional[VisitUpsert] = None,
    visited: VisitedService = Depends(get_visited),
):
    """
    Mark a place as visited; marking it again updates date and notes
    """
    visit = visit or VisitUpsert()
    return await visited.add(place_id, visit.visit_date, visit.notes)


@router.delete("/{place_id}", response_model=VisitResult)
async def unmark_visited(
    place_id: int,
    visited: VisitedService = Depends(get_visited),
):
    return await visited.remove(place_id)


@router.post("/{place_id}/toggle", response_model=VisitToggleResult)
async def toggle_visited(
    place_id: int,
    visit: Optional[VisitUpsert] = None,
    visited: VisitedService = Depends(get_visited),
):
    visit = visit or VisitUpsert()
    return await visited.toggle(place_id, visit.visit_date, visit.notes)
