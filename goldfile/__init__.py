"""Golden file test assertions with diffs, templates and update mode."""

__version__ = "2.0.0"