"""
Newsdesk Modules
================

Flask blueprint modules for the editorial workflow.
"""

__all__ = ['auth', 'selection', 'publication', 'reader', 'analytics', 'ops']
