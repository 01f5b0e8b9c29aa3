"""
DAOs Package — Data Access Layer (SQLAlchemy 2.0)
=================================================

The `daos` package provides the Data Access Layer for the application.
It encapsulates all interactions with SQLAlchemy ORM entities, providing
clean persistence APIs for the service layer while hiding query details.

Conventions
-----------
- SQLAlchemy 2.0 typed mappings (Mapped[...] / mapped_column)
- Session lifecycle (open/commit/rollback) is handled by callers
- DAOs log and re-raise so upper layers decide error policy

Contents
--------
- UserDao
    Creates users with password hashing; fetches by email or id.

- CaseDao
    Creates cases; fetches by id, invite token or participating user;
    updates invite, summary and status; resolves a case with one
    conditional update once every participant signed.

- ParticipantDao
    Adds participants, fetches them with their user rows, sets the signing flag.

- ContextDao
    Inserts and reads per-participant contexts.

- CaseMessagesDao
    Appends messages and reads a case transcript in chronological order.

- AgreementDao
    Creates the agreement, overwrites the draft (optionally guarded by
    version) and freezes it on finalization.

- RateLimitDao
    Reads and writes the per-user timestamp list.

- CaseFileDao
    Records uploaded-file metadata and lists it per case.
"""
