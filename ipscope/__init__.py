"""ipscope: look up public IP geolocation and keep a short lookup history."""

__version__ = "0.1.0"
