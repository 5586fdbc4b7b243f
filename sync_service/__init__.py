"""
Offline sync service: settings, wiring, the FastAPI app factory and the CLI.
"""
