"""
API Layer

HTTP routes, dependencies, schemas and middleware.
"""
