"""API route modules."""

from pmvault.api.routes import boards, health, projects, stories, tasks, vault

__all__ = ["boards", "health", "projects", "stories", "tasks", "vault"]
