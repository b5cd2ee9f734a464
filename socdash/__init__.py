"""SOC dashboard alert ingestion and distribution service"""

__version__ = "1.0.0"
