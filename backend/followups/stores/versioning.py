"""Optimistic concurrency for every versioned table.

Writers never mutate a loaded instance directly.  They hand the changes to
``update_versioned`` together with the instance they read, and the UPDATE is
conditioned on the version that instance carried.  Zero matching rows means
someone else committed first.
"""
from __future__ import annotations

from typing import Any

from sqlalchemy import update
from sqlalchemy.orm.attributes import set_committed_value

from ..errors import EditConflict
from ..models.base import VersionedMixin
from .base import Store


async def update_versioned(
    store: Store,
    record: VersionedMixin,
    changes: dict[str, Any],
    observed_version: int | None = None,
) -> int:
    """Apply ``changes`` if the row is still at ``observed_version``.

    ``observed_version`` defaults to the version on ``record``.  On success
    the transaction is committed, ``record`` reflects the new state, and the
    new version is returned.  Otherwise ``EditConflict`` is raised and
    nothing is written.

    The conflict path ends the transaction with a commit of the no-op
    statement rather than a rollback, so instances already loaded in the
    session keep their attributes and stay readable outside a greenlet.
    """

    model = type(record)
    expected = record.version if observed_version is None else observed_version

    statement = (
        update(model)
        .where(model.id == record.id, model.version == expected)
        .values(**changes, version=model.version + 1)
        .returning(model.version)
        .execution_options(synchronize_session=False)
    )
    result = await store.execute(statement)
    new_version = result.scalar_one_or_none()
    if new_version is None:
        await store.commit()
        raise EditConflict()

    await store.commit()

    for key, value in changes.items():
        set_committed_value(record, key, value)
    set_committed_value(record, "version", new_version)
    return new_version
