"""Mirror Todoist tasks into a Markdown vault and create tasks via quick add."""

__version__ = "0.1.0"
