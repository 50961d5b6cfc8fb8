"""
Host collaborators: protocols and the in-memory stand-in.
"""
