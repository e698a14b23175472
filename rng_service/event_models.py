from datetime import datetime, timezone
import uuid

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GenerationEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user: str = Field(..., description="Caller supplied username")
    value: float = Field(..., alias="rng", ge=0.0, lt=1.0)
    timestamp: datetime = Field(default_factory=utcnow)


class Average(BaseModel):
    user: str
    count: int
    average: float
