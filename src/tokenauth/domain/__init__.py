"""Domain layer for the tokenauth demo server.

Contains:
- Token storage, sessions and the ``StpLogic`` login API.
- Permission providers, route rules and endpoint checks.
- HTTP Basic/Digest and bcrypt helpers, demo account records.
- Wire models in `models/`.
"""
