"""Cache, tool, model and rule modules."""
