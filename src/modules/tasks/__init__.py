"""Task module: permission rules, mutation planning and the task service."""
