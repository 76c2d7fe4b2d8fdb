"""Core wiring: ports (Protocols) and the shared AppState."""
