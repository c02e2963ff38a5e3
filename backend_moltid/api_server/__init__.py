"""
API server package: HTTP/REST interface.

Exposes agent registration, lookup, search, Moltbook verification, trust
breakdowns, and vouching. Handles API-key authentication and maps domain
errors to the JSON error envelope; delegates everything else to services.
"""
