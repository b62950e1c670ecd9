"""Realtime channel and transport helpers."""
