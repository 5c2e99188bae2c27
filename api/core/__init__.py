"""
Shared, cross-cutting code for the API.

`core/` should contain small building blocks that multiple features use
(settings, DB wiring, the response envelope, errors, pagination, logging,
uploads). Keep feature-specific SQL and business logic in the corresponding
feature package (e.g. `inquiries/`).
"""
