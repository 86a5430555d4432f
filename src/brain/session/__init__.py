# src/brain/session/__init__.py
from .state_machine import DialogueStateMachine, ReplyCore, Transition, TurnInput
from .store import InMemorySessionStore, SessionStore

__all__ = [
    "DialogueStateMachine",
    "InMemorySessionStore",
    "ReplyCore",
    "SessionStore",
    "Transition",
    "TurnInput",
]
