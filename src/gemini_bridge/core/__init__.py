"""Shared core utilities for gemini-bridge."""
