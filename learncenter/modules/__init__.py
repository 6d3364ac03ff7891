"""
Learning Center Modules
=======================

Flask blueprint modules for the learning center admin.
"""

__all__ = ['dashboard', 'resources', 'versions']
