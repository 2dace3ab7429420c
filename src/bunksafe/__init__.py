"""BunkSafe: semester attendance tracker."""

__version__ = "0.1.0"
