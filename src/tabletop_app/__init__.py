"""
Tabletop App package.

A FastAPI server rendering a todo list and Fate character sheets as HTML.
Build an app with `tabletop_app.main.create_app()`, or run `python -m tabletop_app`.
"""
