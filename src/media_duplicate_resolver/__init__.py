"""Media Duplicate Resolver - Remove lower-quality duplicate movies from a media library."""

__version__ = "0.1.0"
