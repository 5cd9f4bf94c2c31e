"""Selftests (plain asserts; each module runs standalone or under pytest)."""
