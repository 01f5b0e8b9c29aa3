"""
Entities Package — SQLAlchemy 2.0 ORM Models (UUID + UTC)
=========================================================

The `entities` package defines the ORM models of the application, mapping
database tables to Python classes using SQLAlchemy 2.0-typed mappings.
These classes form the persistence backbone and are consumed by DAOs
(`daos` package) to perform CRUD and transactional operations.

Tech Stack & Conventions
------------------------
- PostgreSQL in production, SQLite in tests (portable `Uuid` columns)
- Timezone-aware timestamps (UTC)
- SQLAlchemy 2.0 style `Mapped[...]` + `mapped_column(...)`
- Clear foreign keys for relational integrity

Contents
--------
- User           — registered user / profile (`app_user`)
- Case           — mediation matter with draft → active → resolved lifecycle (`cases`)
- CaseParticipant — user's membership, role and signing flag (`case_participants`)
- CaseContext    — a participant's private background/goals statement (`case_context`)
- CaseMessage    — append-only chat transcript (`messages`)
- Agreement      — evolving, then frozen, settlement text (`agreements`)
- RateLimit      — per-user assist-call timestamps (`rate_limits`)
- CaseFile       — uploaded document metadata (`case_files`)
"""

from mediator.database.entities.user import User  # noqa: F401
from mediator.database.entities.cases import Case  # noqa: F401
from mediator.database.entities.participants import CaseParticipant  # noqa: F401
from mediator.database.entities.contexts import CaseContext  # noqa: F401
from mediator.database.entities.messages import CaseMessage  # noqa: F401
from mediator.database.entities.agreements import Agreement  # noqa: F401
from mediator.database.entities.rate_limits import RateLimit  # noqa: F401
from mediator.database.entities.case_files import CaseFile  # noqa: F401
