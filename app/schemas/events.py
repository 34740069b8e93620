"""Trigger events that advance badge progress."""
from __future__ import annotations

from typing import Annotated, Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from app.utils.exceptions import EventValidationError

UserId = Annotated[str, Field(min_length=1, max_length=64)]


class _TriggerEventBase(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    user_id: UserId

    def payload(self) -> dict[str, Any]:
        """Return the event as plain JSON-compatible data."""

        return self.model_dump(mode="json")


class QuestCompletedEvent(_TriggerEventBase):
    kind: Literal["quest_completed"] = "quest_completed"
    quest_id: str


class WaypointReachedEvent(_TriggerEventBase):
    kind: Literal["waypoint_reached"] = "waypoint_reached"
    waypoint_id: str
    quest_id: str


class FriendAddedEvent(_TriggerEventBase):
    kind: Literal["friend_added"] = "friend_added"
    friend_id: str


class LoginStreakEvent(_TriggerEventBase):
    kind: Literal["login_streak"] = "login_streak"
    streak: int = Field(ge=0)


class QuestCreatedEvent(_TriggerEventBase):
    kind: Literal["quest_created"] = "quest_created"
    quest_id: str


TriggerEvent = Annotated[
    QuestCompletedEvent
    | WaypointReachedEvent
    | FriendAddedEvent
    | LoginStreakEvent
    | QuestCreatedEvent,
    Field(discriminator="kind"),
]

trigger_event_adapter: TypeAdapter[TriggerEvent] = TypeAdapter(TriggerEvent)


def parse_trigger_event(payload: Mapping[str, Any]) -> TriggerEvent:
    """Validate a raw mapping into the matching event variant."""

    try:
        return trigger_event_adapter.validate_python(dict(payload))
    except ValidationError as exc:
        raise EventValidationError(
            "Invalid trigger event",
            details={"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc


__all__ = [
    "FriendAddedEvent",
    "LoginStreakEvent",
    "QuestCompletedEvent",
    "QuestCreatedEvent",
    "TriggerEvent",
    "WaypointReachedEvent",
    "parse_trigger_event",
    "trigger_event_adapter",
]
