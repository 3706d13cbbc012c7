"""
Persistence layer: key-value store, data models and repositories.
"""
