"""
Data Layer

Physical persistence for uploaded files.
"""
