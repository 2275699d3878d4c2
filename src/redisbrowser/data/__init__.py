"""Store access and per-server session state."""
