"""Tkinter views package.

Main window layout
==================

+------------------------------------------------------+
| [tab] [tab] [New]          Refresh | New Key | Close |
+----------------------+-------------------------------+
| Outline (namespaces) | Editor (Idle/Editing/Creating)|
+----------------------+-------------------------------+
| status bar                                           |
+------------------------------------------------------+

The connection form replaces everything above the status bar while no
session is active.

Callback Signatures:
- OutlinePanel.on_key_select(key: str)
- OutlinePanel.on_toggle(path: tuple[int, ...])
  Path is the NamespaceView path of the opened or closed namespace.
- EditorPanel / TabBar receive the controller dispatch function.
"""
