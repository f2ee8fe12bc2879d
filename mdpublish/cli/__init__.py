"""Command-line interface for mdpublish."""
