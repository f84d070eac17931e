"""
Newsletter API Modules
======================

Flask blueprints for the public subscription API, health check and admin listing.
"""

__all__ = ['newsletter', 'health', 'admin']
