"""ClaudePilot - A terminal dashboard for managing multiple Claude sessions."""

try:
    from ._version import __version__
except ImportError:
    try:
        from importlib.metadata import version

        __version__ = version("claudepilot")
    except Exception:
        __version__ = "0.0.0+unknown"
