"""
HTTP layer for the sync service: routers, schemas and dependency providers.
"""
