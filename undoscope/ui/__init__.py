"""Qt user interface bindings."""
