"""create-go-app: scaffold multi-module Go workspaces."""

__version__ = "0.1.0"
