"""Clipboard access and polling."""
