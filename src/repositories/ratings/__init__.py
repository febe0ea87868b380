"""Rating persistence helpers."""
