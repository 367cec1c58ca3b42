"""
Compensated multi-step writes

Each step of a multi-row write commits on its own. Steps that leave rows
behind register an undo callable; when a later step fails the session is
rolled back, the undo callables run newest first and the original error is
re-raised.
"""

import logging
from typing import Callable, Optional, TypeVar

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Compensation:
    """Collects undo actions for the steps that already committed"""

    def __init__(self, db: Session):
        self.db = db
        self._undo: list[tuple[str, Callable[[], None]]] = []

    def add(self, undo: Callable[[], None], description: str = "") -> None:
        self._undo.append((description or getattr(undo, "__name__", "undo"), undo))

    def delete_on_failure(self, model, row_id: int) -> None:
        """Register deletion of a committed row"""

        def undo():
            # ORM delete so that line items cascade
            row = self.db.get(model, row_id)
            if row is not None:
                self.db.delete(row)
                self.db.commit()

        self.add(undo, f"delete {model.__tablename__}#{row_id}")

    def run(self) -> None:
        self.db.rollback()
        while self._undo:
            description, undo = self._undo.pop()
            try:
                undo()
                logger.info(f"↩️ Compensated: {description}")
            except Exception as e:
                # Keep going, the original failure is what gets reported
                logger.error(f"❌ Compensation '{description}' failed: {e}")
                self.db.rollback()

    def __enter__(self) -> "Compensation":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.run()
        return False


def with_compensation(
    db: Session,
    create: Callable[[Compensation], T],
    rollback_on_failure: Optional[Callable[[BaseException], None]] = None,
) -> T:
    """Run ``create`` with a Compensation; undo its committed steps if it fails.

    ``rollback_on_failure`` runs after the registered undo actions and
    receives the original exception.
    """
    compensation = Compensation(db)
    try:
        return create(compensation)
    except Exception as exc:
        compensation.run()
        if rollback_on_failure is not None:
            try:
                rollback_on_failure(exc)
            except Exception as e:
                logger.error(f"❌ Rollback handler failed: {e}")
                db.rollback()
        raise
