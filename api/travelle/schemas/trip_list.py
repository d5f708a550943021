"""
Trip List Schemas - per-user packing checklists
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime, timezone
import uuid


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TripItem(BaseModel):
    """A single checklist entry"""
    id: str = Field(default_factory=lambda: _new_id("item"))
    text: str
    completed: bool = False
    category: str = "other"
    priority: int = 2  # 1 high, 2 normal, 3 low
    notes: str = ""
    created_at: datetime = Field(default_factory=_now)


class TripList(BaseModel):
    """A packing checklist for one trip, owned by one user"""
    id: str = Field(default_factory=lambda: _new_id("trip"))
    name: str
    destination: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    items: List[TripItem] = []
    created_at: datetime = Field(default_factory=_now)

    @property
    def pending_items(self) -> List[TripItem]:
        return [item for item in self.items if not item.completed]

    @property
    def completion(self) -> float:
        """Percentage of completed items; an empty list counts as done"""
        if not self.items:
            return 100.0
        done = len(self.items) - len(self.pending_items)
        return done / len(self.items) * 100


class TripListCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    destination: str = Field(..., min_length=1, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class TripListUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    destination: Optional[str] = Field(None, min_length=1, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class TripItemCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=500)
    category: str = "other"
    priority: int = Field(2, ge=1, le=3)
    notes: str = ""


class TripItemUpdate(BaseModel):
    text: Optional[str] = Field(None, min_length=1, max_length=500)
    completed: Optional[bool] = None
    category: Optional[str] = None
    priority: Optional[int] = Field(None, ge=1, le=3)
    notes: Optional[str] = None


class TripListResponse(TripList):
    """Trip list with its completion percentage rounded for display"""
    completion_percent: int = 0

    @classmethod
    def from_trip_list(cls, trip_list: TripList) -> "TripListResponse":
        return cls(**trip_list.model_dump(), completion_percent=round(trip_list.completion))


class ItemCategory(BaseModel):
    id: str
    name: str
    icon: str


class ReminderCounts(BaseModel):
    reminders_sent: int = 0
    congratulations_sent: int = 0
    errors: int = 0


class ReminderRunResult(BaseModel):
    success: bool
    reason: Optional[str] = None
    results: Optional[ReminderCounts] = None
    lists_checked: int = 0


class TripListDocument(BaseModel):
    """Stored form of a user's trip lists; version grows by one on every save"""
    version: int = 0
    lists: List[TripList] = []


class RepairResult(BaseModel):
    success: bool
    reason: Optional[str] = None
    message: Optional[str] = None
    key: Optional[str] = None
    total_lists: int = 0
    error: Optional[str] = None
