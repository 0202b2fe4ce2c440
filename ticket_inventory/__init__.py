"""Real-time ticket inventory with time-boxed checkout holds."""

__version__ = "1.0.0"
