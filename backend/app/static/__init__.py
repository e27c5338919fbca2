"""Serving of the built front-end bundle."""
