"""DataPilot: agentic data science workspace with live model telemetry."""

__version__ = "1.0.0"
