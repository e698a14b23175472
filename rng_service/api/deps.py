from fastapi import Request

from ..metrics import Metrics
from ..store.base import EventStore


def get_store(request: Request) -> EventStore:
    return request.app.state.store


def get_metrics(request: Request) -> Metrics:
    return request.app.state.metrics
