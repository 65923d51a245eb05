"""
Use Cases

- sessions/: Authentication session lifecycle
"""
