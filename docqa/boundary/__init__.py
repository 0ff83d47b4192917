"""Boundary adapters: database, embedding providers, file storage, notifications."""
