"""Command-line interface for financeos."""
