"""Default TOML configuration files."""
