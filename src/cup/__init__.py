"""Keep dotfiles in a versioned manifest and archive."""

__version__ = "0.1.0"
