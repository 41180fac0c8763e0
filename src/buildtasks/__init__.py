"""Task modules live here.

Each module declares tasks with `@taskrunner.task(name=..., deps=[...])` or
`taskrunner.alias(...)`; the CLI imports every module and collects them.
Keep tasks modular per file.
"""
