"""Repository-to-documentation catalogue service."""
