"""Desktop Provisioner — one-shot Xfce appearance and panel setup."""

__version__ = "0.1.0"
