"""
Settings and database bootstrap.

Contents:
    - config: `Settings` singleton read from the environment or `.env` (database, JWT, OpenAI, rate limit, retry and S3 options)
    - connection_engine: engine built from those settings, the shared MetaData, the declarative base of the case entities and `create_tables()`
"""
