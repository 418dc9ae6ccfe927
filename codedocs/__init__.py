"""CodeDocs: README generation from remote repository analysis."""

__version__ = "1.0.0"
