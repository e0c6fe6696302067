"""shipyard - CI pipelines for a Go application, driven through Dagger."""

__version__ = "0.1.0"
