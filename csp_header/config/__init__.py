"""Settings and policy presets."""
