from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from ..event_models import Average, GenerationEvent, utcnow


class GenerationEventList(BaseModel):
    rngs: List[GenerationEvent] = Field(default_factory=list)


class AverageList(BaseModel):
    averages: List[Average] = Field(default_factory=list)


class UserList(BaseModel):
    users: List[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str
    timestamp: datetime = Field(default_factory=utcnow)
