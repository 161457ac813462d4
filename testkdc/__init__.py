"""Provision an MIT Kerberos KDC for testing."""

__version__ = '0.1.0'
