"""Service layer for business logic.

Services encapsulate all business logic, keeping routes thin and focused
on HTTP handling.

Layer hierarchy:
    Routes (HTTP) -> Services (Business Logic) -> Repositories (Database)

The calculators (impact, points, badges) and the check-in evaluation are pure
functions with no database access; the async functions around them load and
persist through repositories.

Services should:
- Contain all business rules and validation
- Orchestrate calls to repositories
- Raise plain exceptions that routes translate to HTTP responses

Services should NOT:
- Directly execute SQL queries (use repositories)
- Know about HTTP request/response details
"""
