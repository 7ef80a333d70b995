"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskFields, TaskFilter, ActionResult)
- task_store.py: SQLite-backed storage
- memory_store.py: in-process storage with the same interface
- view_cache.py: per-filter listing cache invalidated by mutations
- validation.py: form validation with field-level messages
- reconcile.py: client-side merge of prioritization results
- task_api.py: the action layer used by the UI
"""
