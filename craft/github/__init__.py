"""GitHub access through the `gh` CLI."""
