"""Workspace assistant: retrieval-augmented question answering."""
