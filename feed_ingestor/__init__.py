"""Feed Ingestor: GitHub issues and Stack Overflow questions into PostgreSQL."""

__version__ = "0.1.0"
