"""Infrastructure Layer — ledger clients and cross-cutting concerns.

Invariants:
    - Every external call wrapped with timeout and error mapping
    - Transport failures surface as FetchFailedError / SubmitFailedError only

Design Decisions:
    - Thin httpx wrappers: the core sees LedgerRecord / TransferRequest, never JSON
"""
