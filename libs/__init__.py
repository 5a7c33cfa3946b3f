"""Lexi shared libraries.

This package contains reusable components:
- common: configuration and the error taxonomy
- models: Firestore document models
- firebase / firestore: client setup and conversation persistence
- caching: Redis client and AI response cache
"""
