"""Configuration: pydantic settings and secret providers."""
