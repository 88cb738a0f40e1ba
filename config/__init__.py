"""Configuration package for the foundation runtime.

Main components:
- config.py: Configuration dataclasses and hierarchical loader
- service.py: Facade for simplified configuration access
"""
