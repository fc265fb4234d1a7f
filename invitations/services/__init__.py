"""Services Layer — record store, reconciliation engine and cache invalidation.

Invariants:
    - Services are the only callers of the store; routes go through InvitationService
    - Domain failures are returned as OperationResult, storage failures propagate
"""
