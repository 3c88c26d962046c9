"""In-memory record store layer.

This package wraps user records with identity, selection, and lifecycle
state, and notifies observers about every change to the collection.
"""
