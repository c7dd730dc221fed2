"""
Shared infrastructure for the FigrClub session core.

Configuration and the base exception hierarchy live here. Feature code
belongs in the modules package.
"""
