from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session


@contextmanager
def smart_transaction(session: Session) -> Iterator[Session]:
    """
    Run a block inside a transaction on `session`, committing on success.

    Nested use (a transaction is already open, e.g. autobegun by an earlier
    query) becomes a SAVEPOINT; the outer caller keeps ownership of the commit.
        with smart_transaction(db):
            repo.upsert(...)
    """
    if session.in_transaction():
        with session.begin_nested():
            yield session
    else:
        with session.begin():
            yield session
