"""Moderator and audience WebSocket services."""
