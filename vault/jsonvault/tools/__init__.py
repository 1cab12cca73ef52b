"""Command-line tools for JSONVault."""
