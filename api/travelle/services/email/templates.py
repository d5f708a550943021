"""
Email Templates - typed payloads rendered to HTML with Jinja2

Each payload dataclass names its template and builds its own subject, so
callers deal in structured data and never in HTML strings.
"""
from dataclasses import dataclass, field, asdict
from datetime import date, datetime, timezone
from typing import ClassVar, List, Optional

from jinja2 import Environment, PackageLoader, select_autoescape
from markupsafe import Markup

_env = Environment(
    loader=PackageLoader("travelle", "templates/email"),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def _format_date(value: Optional[date]) -> str:
    """MM/DD/YYYY, empty for missing dates"""
    if not value:
        return ""
    return value.strftime("%m/%d/%Y")


_env.filters["display_date"] = _format_date


@dataclass
class RenderedEmail:
    subject: str
    html: str


@dataclass
class PasswordRecoveryEmail:
    template: ClassVar[str] = "password_recovery.html"

    reset_url: str
    expires_in_minutes: int = 60

    @property
    def subject(self) -> str:
        return "Password recovery - Travelle"


@dataclass
class NotificationEmail:
    """Free-form notice; message_html is trusted markup written by the service"""
    template: ClassVar[str] = "notification.html"

    title: str
    message_html: str

    @property
    def subject(self) -> str:
        return self.title


@dataclass
class TripCongratulationsEmail:
    template: ClassVar[str] = "trip_congratulations.html"

    destination: str
    trip_url: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def subject(self) -> str:
        return f"Happy trip to {self.destination}! 🎉✈️"


REMINDER_KINDS = {
    "today": {
        "subject": "URGENT! Pending items for your trip to {destination} TODAY ⚠️",
        "heading": "Your trip to {destination} is TODAY!",
        "intro": "Today is the day of your trip to {destination}! However, we noticed that you still have pending items on your list.",
        "color": "#e53e3e",
        "background": "#fff5f5",
    },
    "tomorrow": {
        "subject": "Reminder: Your trip to {destination} is TOMORROW 🧳",
        "heading": "Your trip to {destination} is TOMORROW!",
        "intro": "Only one day left until your trip to {destination}! We've noticed that you still have pending items on your list.",
        "color": "#dd6b20",
        "background": "#fffaf0",
    },
    "three_days": {
        "subject": "Reminder: 3 days until your trip to {destination} 📝",
        "heading": "3 days until your trip to {destination}!",
        "intro": "Your trip to {destination} is getting closer. We've noticed that you still have pending items on your list.",
        "color": "#3182ce",
        "background": "#ebf8ff",
    },
}


@dataclass
class TripReminderEmail:
    template: ClassVar[str] = "trip_reminder.html"

    kind: str  # today | tomorrow | three_days
    destination: str
    trip_url: str
    completion_percent: int
    pending_count: int
    shown_items: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.kind not in REMINDER_KINDS:
            raise ValueError(f"Unknown reminder kind: {self.kind}")

    @property
    def remaining_count(self) -> int:
        return max(self.pending_count - len(self.shown_items), 0)

    @property
    def style(self) -> dict:
        return REMINDER_KINDS[self.kind]

    @property
    def subject(self) -> str:
        return self.style["subject"].format(destination=self.destination)


def render_email(payload) -> RenderedEmail:
    """Render any payload dataclass into subject + HTML"""
    context = asdict(payload)
    context["payload"] = payload
    context["year"] = datetime.now(timezone.utc).year
    if isinstance(payload, NotificationEmail):
        context["message_html"] = Markup(payload.message_html)

    html = _env.get_template(payload.template).render(**context)
    return RenderedEmail(subject=payload.subject, html=html)
