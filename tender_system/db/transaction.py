from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    One logical operation = one transaction.
    Commits when the block completes, rolls everything back on any error.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
