"""
Infrastructure package.

Collaborator contracts and their concrete HTTP/RPC adapters, the resilient
pool wrapper, credential loading and logging setup.
"""
