"""Shared helpers for Automaker tests."""
