"""Taskroom backend: shared task lists with AI-assisted day scheduling."""
