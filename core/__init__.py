"""
Core Layer

Server lifecycle and the streaming primitives the endpoints are built on.
"""
