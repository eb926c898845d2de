"""
Core engines.

Components:
- models.py: Task, Category, Tag, patches, ValidationResult
- dates.py: local-day helpers and calendar arithmetic
- filtering.py: FilterState + apply_filters (status, category, tag, search, sort)
- search.py: relevance ranking and suggestions
- recurrence.py: next-occurrence dates
- reconcile.py: incremental list-view updates with a full-rebuild fallback
- validation.py: field and record rules
"""
