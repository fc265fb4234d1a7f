"""Core Layer — pure invitation logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, models/ or db/
    - Filter evaluation and field enforcement are pure and deterministic
"""
