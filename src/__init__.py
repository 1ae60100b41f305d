"""
MemeDash - an operations dashboard for the meme platform.

This package contains the complete application:
- core: Framework-agnostic dashboard logic (paging, history, metrics)
- infrastructure: AWS and local persistence integrations
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
