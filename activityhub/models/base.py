import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base for every ActivityHub table.

    Primary keys are opaque UUID4 strings (``new_id``) and timestamps are
    stored as naive UTC (``utc_now``).
    """

    pass


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(dt: datetime) -> datetime:
    """
    Normalize to the storage convention (naive UTC).
    - naive input is assumed to already be UTC
    - aware input is converted to UTC and tzinfo dropped
    """
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)
