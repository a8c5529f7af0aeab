"""
Self-signed TLS certificates for local development.
"""

__version__ = "1.0.0"
