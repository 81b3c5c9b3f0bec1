"""
envboot — declarative, idempotent environment bootstrap.

Detects the machine, plans what is missing, and drives the native
installers (Homebrew, apt-family, pacman, apk, winget, npm) to bring
it to the declared target state.
"""

__version__ = "0.1.0"
