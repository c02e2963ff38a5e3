"""
Core utilities: exception taxonomy shared by the graph store, orchestration, and API.
"""
