"""
In-process blueprint store.

Used for local runs without the blueprints API (BLUEPRINT_STORE=memory) and in
tests. Blueprints are created on their first point.
"""

import asyncio
from typing import Any, Dict, Optional, Tuple

from .blueprint_store import BlueprintStore


class MemoryBlueprintStore(BlueprintStore):
    """Keeps blueprints as plain dicts keyed by (author, name)."""

    def __init__(self):
        self._blueprints: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    @property
    def kind(self) -> str:
        return "memory"

    async def append_point(self, author: str, name: str, point: Dict[str, float]) -> None:
        async with self._lock:
            blueprint = self._blueprints.setdefault(
                (author, name),
                {"author": author, "name": name, "points": []},
            )
            blueprint["points"].append({"x": point["x"], "y": point["y"]})

    async def fetch_blueprint(self, author: str, name: str) -> Optional[Any]:
        async with self._lock:
            blueprint = self._blueprints.get((author, name))
            if blueprint is None:
                return None
            # Copy so callers never share state with the store
            return {**blueprint, "points": [dict(p) for p in blueprint["points"]]}
