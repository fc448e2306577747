"""
Demo Tool - connectivity checks that need no configuration.
"""

from .demo_tool import DemoIntegration, register_tools

__all__ = ["DemoIntegration", "register_tools"]
