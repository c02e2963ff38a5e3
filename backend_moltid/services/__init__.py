"""
Services: orchestration of the identity store, vouch graph, and trust engine.

Each operation runs as one unit of work: mutate, recompute the affected scores
from the current graph, persist, commit.
"""
