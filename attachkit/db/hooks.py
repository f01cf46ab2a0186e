from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import event
from sqlalchemy.orm import Session, SessionTransaction, object_session

from attachkit.features.attachments.declarations import attachments_for, declared_attachments
from attachkit.features.attachments.lifecycle import AttachmentLifecycle

logger = logging.getLogger(__name__)

_PENDING_KEY = "attachkit.pending_commits"


def _pending(session: Session) -> list[tuple[AttachmentLifecycle, SessionTransaction | None]]:
    return session.info.setdefault(_PENDING_KEY, [])


def _queue(session: Session, handle: AttachmentLifecycle) -> None:
    transaction = session.get_nested_transaction() or session.get_transaction()
    pending = [item for item in _pending(session) if item[0] is not handle]
    pending.append((handle, transaction))
    session.info[_PENDING_KEY] = pending


def _started_within(transaction: SessionTransaction | None, savepoint: SessionTransaction) -> bool:
    while transaction is not None:
        if transaction is savepoint:
            return True
        transaction = transaction.parent
    return False


def _write_attachments(_mapper: Any, _connection: Any, target: Any) -> None:
    session = object_session(target)
    for handle in attachments_for(target):
        if not handle.write_pending():
            continue
        if session is None:
            handle.finish_commit()
        else:
            _queue(session, handle)


def _destroy_attachments(_mapper: Any, _connection: Any, target: Any) -> None:
    for handle in attachments_for(target):
        handle.on_before_destroy()


def _finish_commits(session: Session) -> None:
    # A released savepoint keeps its work queued for the outer commit.
    if session.in_nested_transaction():
        return
    pending = session.info.pop(_PENDING_KEY, [])
    for handle, _transaction in pending:
        handle.finish_commit()
    if pending:
        logger.debug("Committed %d attachment(s) after transaction commit.", len(pending))


def _revert_pending(session: Session, savepoint: SessionTransaction | None = None) -> None:
    kept: list[tuple[AttachmentLifecycle, SessionTransaction | None]] = []
    reverted = 0
    for handle, transaction in session.info.pop(_PENDING_KEY, []):
        if savepoint is not None and not _started_within(transaction, savepoint):
            kept.append((handle, transaction))
            continue
        handle.revert_writes()
        reverted += 1
    if kept:
        session.info[_PENDING_KEY] = kept
    if reverted:
        logger.info("Reverted files of %d attachment(s) after rollback.", reverted)


def _revert_on_rollback(session: Session) -> None:
    _revert_pending(session, session.get_nested_transaction())


def _revert_on_close(session: Session, transaction: SessionTransaction) -> None:
    # A session closed without commit never fires after_commit for its queued work.
    if transaction.parent is None and not transaction.nested:
        _revert_pending(session)


def _register_session_hooks() -> None:
    for event_name, listener in (
        ("after_commit", _finish_commits),
        ("after_rollback", _revert_on_rollback),
        ("after_transaction_end", _revert_on_close),
    ):
        if not event.contains(Session, event_name, listener):
            event.listen(Session, event_name, listener)


def register_attachment_hooks(model_cls: type) -> type:
    """Wire declared attachments of ``model_cls`` into its mapper and session events.

    Files are written after the row is inserted or updated, inside the same
    flush, so the primary key is already assigned. The previous files are only
    removed once the transaction commits; a rollback deletes the newly written
    ones instead. Usable as a class decorator.
    """
    names = sorted(declared_attachments(model_cls))
    if not names:
        raise ValueError(f"{model_cls.__name__} declares no attachments.")

    for event_name in ("after_insert", "after_update"):
        if not event.contains(model_cls, event_name, _write_attachments):
            event.listen(model_cls, event_name, _write_attachments, propagate=True)
    if not event.contains(model_cls, "before_delete", _destroy_attachments):
        event.listen(model_cls, "before_delete", _destroy_attachments, propagate=True)
    _register_session_hooks()

    logger.debug("Registered attachment hooks on %s for %s.", model_cls.__name__, ", ".join(names))
    return model_cls
