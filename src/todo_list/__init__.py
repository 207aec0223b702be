"""
To-do list service package.

Exposes a FastAPI application (see ``todo_list.main``) backed by a pluggable
task store and a controller that owns the visible, searchable task list.
"""

__version__ = "0.1.0"
