"""
Host framework integrations.
"""
