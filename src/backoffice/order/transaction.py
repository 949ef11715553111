"""Explicit read-then-write transactions over the back office repositories.

A unit of work is a plain function taking a ``Transaction``. It reads every
aggregate it needs with ``get``, mutates them in memory and queues them with
``set``. Nothing reaches the repositories until ``commit``, which checks that
none of the aggregates read has moved on since, then writes the queued ones in
a single Protean ``UnitOfWork``.

``run_in_transaction`` re-runs the whole function when a commit loses the race,
so work functions must not have side effects outside the transaction.
"""

import os
import threading

import structlog
from protean import UnitOfWork
from protean.exceptions import InvalidOperationError, ObjectNotFoundError
from protean.utils.globals import current_domain

from backoffice.shared.errors import TransactionConflict, TransactionFailed

logger = structlog.get_logger(__name__)

TRANSACTION_MAX_ATTEMPTS = int(os.getenv("BACKOFFICE_TXN_MAX_ATTEMPTS", "5"))

# Serialises the revision check and the write so two commits cannot both pass
_commit_guard = threading.RLock()


class Transaction:
    def __init__(self):
        self._read_revisions = {}
        self._writes = {}
        self.committed = False

    def get(self, aggregate_cls, identifier):
        """Read an aggregate and remember the revision it was read at.

        Raises ``ObjectNotFoundError`` when the record does not exist.
        """
        if self._writes:
            raise InvalidOperationError({"transaction": ["All reads must happen before the first write"]})

        record = current_domain.repository_for(aggregate_cls).get(identifier)
        self._read_revisions[(aggregate_cls, str(identifier))] = record.revision or 0
        return record

    def set(self, aggregate):
        """Queue an aggregate for writing at commit. Setting it twice keeps the latest."""
        if self.committed:
            raise InvalidOperationError({"transaction": ["Transaction is already committed"]})
        self._writes[(type(aggregate), str(aggregate.id))] = aggregate

    def _verify_reads(self):
        for (aggregate_cls, identifier), revision in self._read_revisions.items():
            try:
                current = current_domain.repository_for(aggregate_cls).get(identifier)
            except ObjectNotFoundError:
                raise TransactionConflict(aggregate_cls.__name__, identifier) from None

            if (current.revision or 0) != revision:
                raise TransactionConflict(aggregate_cls.__name__, identifier)

    def commit(self):
        with _commit_guard:
            self._verify_reads()

            with UnitOfWork():
                for aggregate in self._writes.values():
                    aggregate.revision = (aggregate.revision or 0) + 1
                    current_domain.repository_for(type(aggregate)).add(aggregate)

        self.committed = True


def run_in_transaction(work, max_attempts=None):
    """Run ``work(transaction)`` and commit it, retrying on ``TransactionConflict``.

    Business errors raised by ``work`` propagate at once with nothing written.
    After ``max_attempts`` conflicting attempts ``TransactionFailed`` is raised.
    Returns whatever ``work`` returned on the attempt that committed.
    """
    attempts = max_attempts or TRANSACTION_MAX_ATTEMPTS

    for attempt in range(1, attempts + 1):
        transaction = Transaction()
        try:
            result = work(transaction)
            transaction.commit()
        except TransactionConflict as exc:
            logger.warning(
                "Transaction conflict, retrying",
                attempt=attempt,
                max_attempts=attempts,
                record_type=exc.record_type,
                record_id=exc.identifier,
            )
            continue
        return result

    logger.error("Transaction retry budget exhausted", attempts=attempts)
    raise TransactionFailed(attempts)
