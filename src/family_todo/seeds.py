"""
Default rows inserted into an empty store on first start.

The seed todos double as the fixed list the local cache hands out when it has
nothing (usable) persisted.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, List

DEFAULT_FAMILY_MEMBERS: List[Dict[str, str]] = [
    {"id": "dad", "name": "Dad", "color": "#3b82f6"},
    {"id": "mom", "name": "Mom", "color": "#ec4899"},
    {"id": "son", "name": "Son", "color": "#10b981"},
    {"id": "daughter", "name": "Daughter", "color": "#f59e0b"},
]

DEFAULT_TODOS: List[Dict[str, Any]] = [
    {
        "id": "1",
        "title": "Shop for dinner",
        "completed": False,
        "assigned_to": "Mom",
        "assigned_to_color": "#ec4899",
        "due_date": date(2025, 10, 16),
        "priority": "high",
        "category": None,
    },
    {
        "id": "2",
        "title": "Finish homework",
        "completed": False,
        "assigned_to": "Son",
        "assigned_to_color": "#10b981",
        "due_date": date(2025, 10, 17),
        "priority": "normal",
        "category": None,
    },
    {
        "id": "3",
        "title": "Take out the trash",
        "completed": True,
        "assigned_to": "Dad",
        "assigned_to_color": "#3b82f6",
        "due_date": date(2025, 10, 16),
        "priority": "normal",
        "category": None,
    },
    {
        "id": "4",
        "title": "Piano practice",
        "completed": False,
        "assigned_to": "Daughter",
        "assigned_to_color": "#f59e0b",
        "due_date": None,
        "priority": "normal",
        "category": None,
    },
    {
        "id": "5",
        "title": "Fold the laundry",
        "completed": False,
        "assigned_to": "Mom",
        "assigned_to_color": "#ec4899",
        "due_date": date(2025, 10, 16),
        "priority": "normal",
        "category": None,
    },
]

# Timestamp given to seed todos that never went through a store (cache fallback)
SEED_TIMESTAMP = datetime(2025, 10, 16, tzinfo=timezone.utc)
