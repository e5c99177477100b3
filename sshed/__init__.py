"""sshed: keeps a searchable host/tag/group graph in sync with an ssh config file."""

__version__ = "0.1.0"
