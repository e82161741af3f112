"""pyide-terminal - embedded command execution engine for the Python IDE."""

__version__ = "0.1.0"
