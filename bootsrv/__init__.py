"""Building blocks for a bare-metal network boot service: iPXE, syslog, TFTP and hardware models."""

__version__ = "0.1.0"