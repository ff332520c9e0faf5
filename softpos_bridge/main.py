"""
SoftPOS Relay - Main entry point.

Runs the WebSocket server that POS clients connect to. Installed as the
``softpos-relay`` script.
"""

from application.bootstrap import run_relay


if __name__ == "__main__":
    run_relay()
