"""Pack manager services performing lifecycle operations.

This module provides the abstract service interface and the
command-driven implementation.
"""

from packctl.services.base import PackService, PackServiceError
from packctl.services.command import CommandPackService, render_command

__all__ = ["CommandPackService", "PackService", "PackServiceError", "render_command"]
