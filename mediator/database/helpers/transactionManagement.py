"""
Database Transaction Management
===============================

Utilities for managing SQLAlchemy sessions with a context variable and a
decorator-based transaction wrapper.

A service function decorated with ``@transactional`` receives a ``session``
keyword argument. Nested decorated calls reuse the outer session, so a chain
of service calls commits (or rolls back) as one unit.

Key features
~~~~~~~~~~~~
- Context variable to store the active session
- Implicit reuse of existing sessions
- Automatic commit and rollback handling
- Clean session closure after execution
"""

from functools import wraps
from sqlalchemy.orm import sessionmaker
import contextvars
import logging
from mediator.database.config.connection_engine import connection_engine

logger = logging.getLogger(__name__)

SessionFactory = sessionmaker(bind=connection_engine)
"""Session factory bound to the application engine."""

db_session_context = contextvars.ContextVar("db_session_context", default=None)
"""Context variable storing the active SQLAlchemy session."""


def transactional(func):
    """
    Decorator to wrap functions in a managed SQLAlchemy transaction.

    Ensures that:
    - If a session already exists in context, it is reused.
    - Otherwise, a new session is created, committed, and closed.
    - On errors, the session is rolled back and closed.

    Parameters
    ----------
    func : callable
        The function to wrap. It must accept a `session` keyword argument.

    Returns
    -------
    callable
        The wrapped function, executed within a database transaction.

    Example
    -------
    >>> @transactional
    ... def create_case(title: str, session=None):
    ...     session.add(Case(...))
    """
    @wraps(func)
    def wrap_func(*args, **kwargs):
        session = db_session_context.get()
        if session:
            return func(*args, session=session, **kwargs)

        session = SessionFactory()
        token = db_session_context.set(session)

        try:
            result = func(*args, session=session, **kwargs)
            session.flush()
            session.commit()
        except Exception:
            logger.debug("Rolling back transaction in %s", func.__name__)
            session.rollback()
            raise
        finally:
            session.close()
            db_session_context.reset(token)

        return result

    return wrap_func
