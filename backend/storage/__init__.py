"""
Persistence for recruiter state.
"""

from .state_store import StateStore, InMemoryStateStore, JsonFileStateStore, create_state_store

__all__ = ['StateStore', 'InMemoryStateStore', 'JsonFileStateStore', 'create_state_store']
