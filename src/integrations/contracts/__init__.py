"""
Contracts (data models).

This folder defines the request/response shapes of the backends.
Examples:
- Catalog, inventory and cart formats (store.py)
- Authentication and user attribute formats (login.py)
- Error records, request statuses and the persistence interface (interfaces.py)

Why this exists:
- Ensures consistent data structures across the SDK and the fake backend
- Prevents "guessing" payload formats in multiple places
- Flows rely on stable models, not on ad-hoc dicts

Both the SDK controllers and the fake backend use these contracts.
"""
