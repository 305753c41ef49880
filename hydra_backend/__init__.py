"""Hydra backend: chat completions over the Anthropic API with in-memory session state."""

__version__ = "4.0.0"
