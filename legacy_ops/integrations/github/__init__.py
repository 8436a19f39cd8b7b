"""
GitHub Integration Module

Provides GitHub REST (PyGithub) and GraphQL access for the store's repositories.
"""

from legacy_ops.integrations.github.client import GitHubClient

__all__ = ["GitHubClient"]
