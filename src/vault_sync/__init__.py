"""vault-sync - three-way sync between a local folder and a GitHub branch."""

__version__ = "0.1.0"
