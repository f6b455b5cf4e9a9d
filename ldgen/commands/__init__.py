"""Subcommands of the ldgen CLI."""
