"""Command line tool for multibundle."""
