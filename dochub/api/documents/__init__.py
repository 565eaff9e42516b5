"""Document metadata module."""
