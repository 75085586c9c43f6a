"""Abstract interfaces for infrastructure collaborators."""
