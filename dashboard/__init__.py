# dashboard/__init__.py
"""Backend for the personal everything dashboard."""

__version__ = "0.3.0"
