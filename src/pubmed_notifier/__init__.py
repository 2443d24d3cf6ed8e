"""Notify chat channels about new articles in PubMed RSS feeds."""

__version__ = "0.1.0"
