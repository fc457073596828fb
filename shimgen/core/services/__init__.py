"""
Services — the generation pipeline stages.

    module_loader   → load a module in a disposable sandbox
    spec_builder    → reflect a marked class into a ScriptSpec
    source_locator  → find the source file defining a class
    emitter         → render a ScriptSpec into shim text
    lifecycle       → write / skip / move / delete generated outputs
"""
