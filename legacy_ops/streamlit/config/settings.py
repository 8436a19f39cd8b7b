"""
Configuration settings for the Streamlit dashboard.
"""

import os

# Page configuration for Streamlit
PAGE_CONFIG = {
    "page_title": "Legacy Ops - Master Control",
    "page_icon": "🍷",
    "layout": "wide",
    "initial_sidebar_state": "collapsed",
}

# API Configuration
# Backend API port is configurable via PORT environment variable (default: 8000)
API_PORT = os.getenv("PORT", "8000")
API_BASE_URL = os.getenv("API_BASE_URL", f"http://localhost:{API_PORT}")
API_TIMEOUT = 120  # seconds; connection tests call every vendor
