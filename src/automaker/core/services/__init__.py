"""Core services: auto mode, features and settings."""
