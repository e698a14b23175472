import re

from fastapi import APIRouter, Depends

from .. import random_source
from ..auth.api_key import verify_api_key
from ..errors import InvalidPagingError, ReservedUsernameError
from ..event_models import Average, GenerationEvent
from ..metrics import Metrics
from ..store.base import ALL_USERS, EventStore
from .deps import get_metrics, get_store
from .schemas import AverageList, ErrorResponse, GenerationEventList, UserList
import structlog

log = structlog.get_logger()

router = APIRouter()

PLACEHOLDER_USERNAME = "undefined"
DEFAULT_PAGE = "1"
DEFAULT_COUNT = "15"

INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")
# SQLite INTEGER is a signed 64-bit value
MAX_SQL_INTEGER = 2**63 - 1

protected = [Depends(verify_api_key)]
unauthorized = {401: {"model": ErrorResponse}}


def _is_anonymous(username: str) -> bool:
    return not username or username.lower() == PLACEHOLDER_USERNAME


def _generate(username: str, store: EventStore, metrics: Metrics) -> GenerationEvent:
    if _is_anonymous(username):
        username = f"Debug{random_source.debug_suffix()}"

    if username.lower() == ALL_USERS.lower():
        metrics.rejected_usernames_total.inc()
        raise ReservedUsernameError(username)

    event = GenerationEvent(user=username, value=random_source.next_unit_float())
    store.insert(event)
    metrics.record_generation(event.value)
    log.info("rng.generated", id=event.id, user=event.user)
    return event


def _average(username: str, store: EventStore) -> Average:
    # "all" in any casing names the aggregate row
    if _is_anonymous(username) or username.lower() == ALL_USERS.lower():
        username = ALL_USERS
    return store.get_average(username)


def _parse_positive(parameter: str, raw: str) -> int:
    # Plain ASCII decimal only, int() would also take " 5 ", "1_0" and non-ASCII digits
    if not INTEGER_PATTERN.fullmatch(raw):
        raise InvalidPagingError(parameter, raw)
    value = int(raw)
    if value > MAX_SQL_INTEGER:
        raise InvalidPagingError(parameter, raw)
    if value < 1:
        raise InvalidPagingError(parameter, raw, f"The {parameter} must be at least 1, got '{raw}'")
    return value


@router.get("/Ping")
async def ping():
    """Responds to a Ping with Pong."""
    return "Pong"


@router.get(
    "/RandomFloat0to1",
    response_model=GenerationEvent,
    dependencies=protected,
    responses=unauthorized,
)
def random_float_anonymous(
    store: EventStore = Depends(get_store),
    metrics: Metrics = Depends(get_metrics),
):
    """Generate a float in [0, 1) for an anonymous debug user."""
    return _generate("", store, metrics)


@router.get(
    "/RandomFloat0to1/{username}",
    response_model=GenerationEvent,
    dependencies=protected,
    responses={**unauthorized, 405: {"model": ErrorResponse}},
)
def random_float(
    username: str,
    store: EventStore = Depends(get_store),
    metrics: Metrics = Depends(get_metrics),
):
    """
    Generate a float in [0, 1) from the OS CSPRNG and record it for the user.

    The username "all" is reserved for the aggregate average and is rejected.
    """
    return _generate(username, store, metrics)


@router.get(
    "/GetAverageRNG",
    response_model=Average,
    dependencies=protected,
    responses={**unauthorized, 404: {"model": ErrorResponse}},
)
def average_all(store: EventStore = Depends(get_store)):
    """Average and count over every generated value."""
    return _average(ALL_USERS, store)


@router.get(
    "/GetAverageRNG/{username}",
    response_model=Average,
    dependencies=protected,
    responses={**unauthorized, 404: {"model": ErrorResponse}},
)
def average_for_user(username: str, store: EventStore = Depends(get_store)):
    """Average and count of the values generated for one user."""
    return _average(username, store)


@router.get(
    "/GetAllAveragesRNG",
    response_model=AverageList,
    dependencies=protected,
    responses=unauthorized,
)
def all_averages(store: EventStore = Depends(get_store)):
    """Per-user averages, without the aggregate over all users."""
    return AverageList(averages=store.list_averages())


@router.get(
    "/GetUsers",
    response_model=UserList,
    dependencies=protected,
    responses=unauthorized,
)
def users(store: EventStore = Depends(get_store)):
    return UserList(users=store.list_users())


@router.get(
    "/GetGenerationDetails",
    response_model=GenerationEventList,
    dependencies=protected,
    responses={**unauthorized, 400: {"model": ErrorResponse}},
)
def generation_details(
    page: str = DEFAULT_PAGE,
    count: str = DEFAULT_COUNT,
    store: EventStore = Depends(get_store),
):
    """
    Page through generated values, most recent first.

    Args:
        page: 1-based page number
        count: Page size
    """
    page_number = _parse_positive("page", page)
    page_size = _parse_positive("count", count)
    offset = (page_number - 1) * page_size
    if offset > MAX_SQL_INTEGER:
        raise InvalidPagingError(
            "page", page, f"The page '{page}' is out of range for count '{count}'"
        )
    events = store.list_events(limit=page_size, offset=offset)
    return GenerationEventList(rngs=events)
