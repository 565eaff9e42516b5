"""DocHub API package."""
