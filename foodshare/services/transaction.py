"""Side effects that must wait for the surrounding transaction to finish.

Callbacks are parked in the session's `info` dict and run by whoever owns the
transaction (get_db, the expiry sweep) once it has committed or rolled back.
"""
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

Callback = Callable[[], Awaitable[Any]]

_ON_COMMIT = "after_commit"
_ON_ROLLBACK = "after_rollback"


def after_commit(session: Any, callback: Callback) -> None:
    session.info.setdefault(_ON_COMMIT, []).append(callback)


def after_rollback(session: Any, callback: Callback) -> None:
    session.info.setdefault(_ON_ROLLBACK, []).append(callback)


async def finish(session: Any, committed: bool) -> None:
    """Run the callbacks for how the transaction ended and drop the others."""
    on_commit = session.info.pop(_ON_COMMIT, [])
    on_rollback = session.info.pop(_ON_ROLLBACK, [])
    for callback in on_commit if committed else on_rollback:
        try:
            await callback()
        except Exception:
            # The transaction outcome is already final; one bad hook must not hide it
            logger.exception("Post-transaction callback %r failed", callback)
