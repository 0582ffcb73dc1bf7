"""Clinical workflow engine for a botulinum-toxin injection practice."""

__version__ = "1.0.0"
