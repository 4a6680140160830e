"""Desktop editor views (PySide6, optional `ui` extra)."""
