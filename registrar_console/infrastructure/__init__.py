"""Infrastructure layer: IO and integrations with the registry server."""
