"""Configuration — ``adrs.toml`` discovery, settings, logging setup."""
