"""taskpilot: personal task manager with LLM-assisted prioritization."""

__version__ = "0.1.0"
