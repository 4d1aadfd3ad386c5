"""Configuration - fzctl.toml discovery, pydantic models, settings, logging."""
