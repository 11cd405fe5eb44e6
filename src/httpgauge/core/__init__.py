"""Core domain: models, ports, extraction, scheduling and encoding."""
