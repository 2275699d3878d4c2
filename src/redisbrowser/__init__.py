"""Browse and edit Redis keys grouped into a namespace tree."""
