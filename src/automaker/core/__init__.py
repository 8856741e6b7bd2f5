"""Agent execution and orchestration core."""
