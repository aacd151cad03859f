"""Iris classification with a resilient-propagation trained feed-forward network."""

__version__ = "1.0.0"
