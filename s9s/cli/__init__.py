"""Interactive plugin shell."""
