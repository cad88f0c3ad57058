"""Summarize long documents with a context-limited language model."""
