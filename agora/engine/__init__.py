"""Agora debate and conviction engine."""
