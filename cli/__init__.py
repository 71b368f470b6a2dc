"""
Property Indexer - Command Line Interface
"""
from cli.main import app

__all__ = ["app"]
