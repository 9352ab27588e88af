"""PageFeed — turn any web page into a JSON Feed (v1.1) document."""

__version__ = "0.1.0"
