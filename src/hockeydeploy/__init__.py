"""Upload Android packages to HockeyApp from a CI pipeline step."""

__version__ = "0.3.0"
