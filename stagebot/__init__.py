"""Stagebot: promotes pull requests from stage to main."""

__version__ = "0.1.0"
