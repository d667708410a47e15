from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .base import Record, utcnow


ActivityType = Literal["comment", "status_change", "assignment", "photo", "inspection", "deficiency"]


class Comment(Record):
    entity_id: str
    text: str
    user_id: str
    attachments: List[str] = Field(default_factory=list)
    mentions: List[str] = Field(default_factory=list)
    edited: bool = False
    parent_id: Optional[str] = None
    reactions: Dict[str, List[str]] = Field(default_factory=dict)  # emoji -> user ids


class Activity(Record):
    type: ActivityType
    entity_id: str
    entity_type: str  # inspection|deficiency|weld_map|nde_report
    user_id: str
    data: Dict[str, Any] = Field(default_factory=dict)


class Mention(BaseModel):
    user_id: str  # author of the mentioning comment
    mentioned: List[str]
    context: str
    timestamp: datetime = Field(default_factory=utcnow)
    entity_id: str
    entity_type: str = "comment"


class CommentCreate(BaseModel):
    text: str
    attachments: List[str] = Field(default_factory=list)
    parent_id: Optional[str] = None
    entity_type: str = "inspection"


class CommentEdit(BaseModel):
    text: str


class ReactionRequest(BaseModel):
    reaction: str


class ActivityCreate(BaseModel):
    type: ActivityType
    entity_id: str
    entity_type: str
    data: Dict[str, Any] = Field(default_factory=dict)
