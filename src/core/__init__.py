"""Shared configuration, errors, logging, and typed models.

This package holds the ambient layer consumed by the record store.
"""
