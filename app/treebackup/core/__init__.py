"""Core support modules: XDG paths and console theme."""
