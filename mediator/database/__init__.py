"""
The `database` package is responsible for all interactions with the application's database.
It provides configuration, entity definitions, data access and the transactional
service functions the API and the mediation core call.

Contents:
    - config:
        Settings and the SQLAlchemy engine / declarative base.

    - entities:
        SQLAlchemy entity models: users, cases, participants, contexts,
        messages, agreements, rate limits and case files.

    - daos:
        Data Access Objects providing persistence operations for the entities.

    - core:
        Transactional service functions that enforce case rules and return
        plain dicts.

    - helpers:
        The `@transactional` decorator and session management.
"""
