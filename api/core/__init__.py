"""
Shared, cross-cutting code for the API.

`core/` should contain small building blocks that multiple features use
(Cloudant wiring, settings, logging, error types). Keep collection-specific
selectors and business logic in the corresponding feature package
(e.g. `content/`).
"""
