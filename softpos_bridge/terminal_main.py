"""
SoftPOS Terminal - Main entry point.

Runs the terminal HTTP server on the handheld. Installed as the
``softpos-terminal`` script.
"""

from application.bootstrap import run_terminal


if __name__ == "__main__":
    run_terminal()
