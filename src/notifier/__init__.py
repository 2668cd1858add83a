"""Notification delivery engine."""
