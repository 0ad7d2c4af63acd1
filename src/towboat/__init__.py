"""towboat — deploy dotfile packages into a target directory by build tag."""

__version__ = "0.2.0"
