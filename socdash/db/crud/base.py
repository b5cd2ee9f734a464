# socdash/db/crud/base.py
"""
Storage boundary helpers shared by the CRUD modules.

Reads run under an execution budget and are retried with backoff on
transient connection errors. Writes are never retried: a failed write is
rolled back and surfaced as StorageError.
"""
import asyncio
import functools
from collections import defaultdict

import backoff
from loguru import logger
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, inspect as sa_inspect
from sqlalchemy.exc import OperationalError, InterfaceError, SQLAlchemyError

from socdash.core.config import settings
from socdash.exceptions.errors import SocDashError, StorageError, QueryTimeoutError, ValidationError

TRANSIENT_ERRORS = (OperationalError, InterfaceError)


def _read_tries() -> int:
    return max(1, settings.STORAGE_READ_RETRIES)


def _reload_tracked(session) -> None:
    tracked = defaultdict(list)
    for obj in list(session.identity_map.values()):
        tracked[type(obj)].append(obj)

    for model, objs in tracked.items():
        pk = sa_inspect(model).primary_key[0]
        ids = [sa_inspect(obj).identity[0] for obj in objs]
        stmt = select(model).where(pk.in_(ids)).execution_options(populate_existing=True)
        found = {id(obj) for obj in session.execute(stmt).scalars()}
        for obj in objs:
            if id(obj) not in found:
                session.expunge(obj)


async def rollback_and_reload(db):
    """
    Roll back, then reload every object the session still tracks.

    A rollback expires all loaded objects, and touching an expired attribute
    outside the async loader fails. Reloading keeps objects returned by
    earlier calls usable after a rejected write or an aborted read. Rows
    that no longer exist are detached.
    """
    await db.rollback()
    await db.run_sync(_reload_tracked)


async def _rollback_before_retry(details):
    db = details["args"][0]
    logger.warning(
        f"Transient storage error in {details['target'].__name__}, "
        f"retry {details['tries']} in {details['wait']:.2f}s"
    )
    await rollback_and_reload(db)


def storage_read(func):
    """Wrap a read: bounded execution time, bounded retries on connection loss"""

    @functools.wraps(func)
    async def budgeted(db, *args, **kwargs):
        try:
            return await asyncio.wait_for(func(db, *args, **kwargs), timeout=settings.QUERY_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            logger.warning(f"{func.__name__} exceeded {settings.QUERY_TIMEOUT_SECONDS}s budget")
            await rollback_and_reload(db)
            raise QueryTimeoutError(
                f"Query exceeded its {settings.QUERY_TIMEOUT_SECONDS:g}s budget; narrow the filter and retry"
            )

    retrying = backoff.on_exception(
        backoff.expo,
        TRANSIENT_ERRORS,
        max_tries=_read_tries,
        on_backoff=_rollback_before_retry,
        factor=0.1,
        max_value=2,
    )(budgeted)

    @functools.wraps(func)
    async def wrapper(db, *args, **kwargs):
        try:
            return await retrying(db, *args, **kwargs)
        except TRANSIENT_ERRORS as e:
            logger.error(f"{func.__name__} failed after {_read_tries()} attempts: {e}")
            raise StorageError("Storage unavailable, read failed after retries") from e

    return wrapper


def storage_write(func):
    """Wrap a write: any storage failure rolls the whole mutation back"""

    @functools.wraps(func)
    async def wrapper(db, *args, **kwargs):
        try:
            return await func(db, *args, **kwargs)
        except SocDashError:
            await rollback_and_reload(db)
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"{func.__name__} failed, nothing was applied: {e}")
            raise StorageError("Write failed and was not applied") from e

    return wrapper


def validate_draft(schema, draft):
    """Coerce a dict (or model) into `schema`, mapping pydantic errors onto ValidationError"""
    if isinstance(draft, schema):
        return draft
    if hasattr(draft, "model_dump"):
        draft = draft.model_dump()
    try:
        return schema.model_validate(draft)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(problems) from e


def coerce_enum(enum_cls, value, field: str):
    """Accept an enum member or its display value; reject anything else"""
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"{field} must be one of: {allowed}")
