"""Blueprint persistence backends"""
from .blueprint_store import BlueprintStore, BlueprintStoreException, HttpBlueprintStore
from .memory_store import MemoryBlueprintStore

__all__ = ["BlueprintStore", "BlueprintStoreException", "HttpBlueprintStore", "MemoryBlueprintStore"]
