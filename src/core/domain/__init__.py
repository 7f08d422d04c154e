"""Domain models and entities.

Why:
- Pure, strict data structures (Pydantic v2) live here.
- The domain knows nothing about subprocesses, the CLI or terminals: only
  steps, targets and their outcomes.
"""
