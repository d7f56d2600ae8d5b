"""Core Layer — pure domain logic, no IO, no async, no settings.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/ or config
    - All functions are pure and deterministic

Design Decisions:
    - Functional core separated from imperative shell: configured values
      (canvas size, memo tag) are passed in as arguments
"""
