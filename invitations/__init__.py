"""Invitations — invitation/request store with reconciliation and a read-through cache.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
