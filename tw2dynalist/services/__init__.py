"""Bot services: integrations, cache, scheduling and processing."""
