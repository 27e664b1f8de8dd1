"""smithy: plugin-extensible developer task runner."""

__version__ = "0.4.0"
