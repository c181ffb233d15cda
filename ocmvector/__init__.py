"""ocmvector: OCM component graph walker and image vector resolver."""

__version__ = "0.1.0"
