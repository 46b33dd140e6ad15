"""Reading tracker — tenant-scoped books and collections.

Brings the core patterns together for one domain:
- SQLAlchemy document models with TenantMixin
- Validated async repositories over a single tenant
- Pure-function validation rules
- FastAPI router with explicit `_id` -> `id` serialization
- Dataclass configuration
"""
