"""VidGen Engine - prompt-to-video generation with a durable render queue."""

__version__ = "0.1.0"
