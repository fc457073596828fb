"""
shimgen — generate Godot C# shims for Python script classes.
"""

__version__ = "0.3.0"
