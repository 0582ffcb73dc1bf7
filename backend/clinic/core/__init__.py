# Core package initialization
# Exposes the cross-cutting modules shared by every layer

from . import config, exceptions, security, validation

__all__ = [
    "config",
    "exceptions",
    "security",
    "validation",
]
