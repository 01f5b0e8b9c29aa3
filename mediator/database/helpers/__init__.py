"""
Transaction helpers for the service layer.

Contents
--------
- transactionManagement
    `@transactional` runs a service function in a session stored in a context
    variable. Nested service calls join the caller's session, so e.g. storing
    an AI summary and posting its message commit or roll back together.
"""
