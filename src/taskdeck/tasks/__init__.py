"""
Task subsystem.

Components:
- kv_store.py: SQLite key-value storage for JSON documents
- task_store.py: owned task/category/tag collections + validated mutations
- task_scheduler.py: recurrence generation policy and polling loop
- task_runner.py: runs the polling loop in a background thread
- task_api.py: small high-level helpers used by the CLI
"""
