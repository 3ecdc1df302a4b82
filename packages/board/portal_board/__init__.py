"""
Project Portal board core

Kanban state for a consultancy's project portal: column ordering, drag-and-drop
sessions and task status bookkeeping, plus the owner-side project board that
persists task collections to the document store.
"""

__version__ = "0.1.0"
