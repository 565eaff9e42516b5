"""Role and actor administration module."""
