"""Command line interface for Vaffaschool."""
