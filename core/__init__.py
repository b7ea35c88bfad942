"""
Core business logic - platform-agnostic.
Used by the Discord bot, the reminder scheduler, and the API server.
"""
