"""
Static tables the generator works from.

    known_godot → Godot type names and the export allow-list
    hooks       → lifecycle hooks the shim can forward
"""
