"""Pydantic Schemas — request/response validation for API endpoints.

Invariants:
    - Schemas validate shape at the system boundary; canvas bounds are checked
      by the codec against the configured canvas size

Design Decisions:
    - Separate from core dataclasses: schemas are API contracts, core types are domain values
"""
