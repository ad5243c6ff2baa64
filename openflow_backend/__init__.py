"""OpenFlow core: board access control, change audit and notification fan-out."""

__version__ = "0.1.0"
