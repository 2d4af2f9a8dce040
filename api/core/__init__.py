"""
Shared, cross-cutting code for the API.

`core/` holds the pieces every feature uses: settings, the DB pool and
executor (`db`), the result envelope (`result`), the generic record model
(`record`) and envelope -> HTTP translation (`responses`). Keep
entity-specific SQL in the corresponding feature package (e.g. `projects/`).
"""
