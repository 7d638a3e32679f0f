"""Build and publish the Gopedia static site."""

__version__ = "0.3.0"
