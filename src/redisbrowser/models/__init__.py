"""Core data model: namespace tree, expansion view, editor states and errors."""
