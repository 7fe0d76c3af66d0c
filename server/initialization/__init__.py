"""
Server Initialization Module.

Initialization logic split into focused modules:
- logging: Logger configuration
- services: Collaborator construction (directory, ledger, reconciler)
"""

__all__ = []
