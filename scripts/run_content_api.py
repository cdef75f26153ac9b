#!/usr/bin/env python3
"""Start the Content API: connect MongoDB, then bind the HTTP listener.

Usage: python scripts/run_content_api.py [config/config.yaml] [--exit-on-failure]
Env overrides: CLIENT_ORIGIN, PORT, MONGO_URI, MONGO_DB_NAME (also from .env).
"""

import os
import sys

# Project root: allow running without pip install
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _PROJECT_ROOT)
os.chdir(_PROJECT_ROOT)


if __name__ == "__main__":
    from content_api.engine.bootstrap import main

    main()
