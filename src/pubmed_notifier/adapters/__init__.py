"""Adapters for feeds, formatting, delivery, translation and storage."""
