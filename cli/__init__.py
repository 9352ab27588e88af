"""PageFeed command-line interface."""
