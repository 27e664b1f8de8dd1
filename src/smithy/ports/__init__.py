"""Contracts for collaborators the dispatcher relies on but does not implement."""
