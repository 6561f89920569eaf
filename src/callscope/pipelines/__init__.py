"""Orchestration of analysis loading and rendering."""
