"""Services Layer — orchestrates async IO around the pure core.

Invariants:
    - Services call core functions with explicit configured values
    - Services never build HTTP responses (routes do)
"""
