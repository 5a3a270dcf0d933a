"""
Family Todo: a small family task tracker.

- family_todo.main: FastAPI application (create_app, app)
- family_todo.client: HTTP client for the API
- family_todo.local_cache: on-disk fallback copy of the todo list
- family_todo.board: headless board state (load, add, toggle, delete, grouping)
"""

__version__ = "0.1.0"
