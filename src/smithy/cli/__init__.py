"""Command line entry points for smithy."""
