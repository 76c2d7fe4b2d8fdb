"""
Task subsystem.

Components:
- task_models.py: data structures (Task, EffortHistory) and wire-format mapping
- task_codec.py: versioned JSON envelope for the persisted collections
- task_store.py: key-value-backed task list + effort history
- task_api.py: small high-level helpers used by the rest of the app
"""
