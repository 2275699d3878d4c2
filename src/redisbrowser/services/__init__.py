"""Service layer for user actions.

Services:
- Controller: applies actions to the active session and publishes snapshots
- actions: message types the views send to the Controller

Views never mutate sessions directly. Every widget event becomes an action
passed to Controller.dispatch, and views re-render from Controller.snapshot()
when notified.
"""

from .controller import Controller, ControllerSnapshot

__all__ = [
    "Controller",
    "ControllerSnapshot",
]
