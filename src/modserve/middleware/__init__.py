"""Middleware for the built-in ASGI host.

    ModuleFiles -- Serve module folders with bare imports rewritten
"""

from modserve.middleware.modules import ModuleFiles
from modserve.middleware.protocol import Middleware, Next

__all__ = ["Middleware", "ModuleFiles", "Next"]
