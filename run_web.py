#!/usr/bin/env python3
"""
Main entry point for the Pitch Board web application.

This script launches the Flask-based web server together with the
background tick loop. Settings come from PITCHBOARD_* environment variables.
"""
from pitchboard.ui.web_app import run_web_app

if __name__ == "__main__":
    run_web_app()
