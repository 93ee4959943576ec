"""Herald: forwards new security findings to ProjectDiscovery notify."""

__version__ = "1.0.2"
