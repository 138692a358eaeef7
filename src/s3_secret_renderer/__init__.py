"""Render object store credentials into a Kubernetes Secret manifest."""

__version__ = "0.1.0"
