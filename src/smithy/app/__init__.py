"""Application layer for smithy."""
