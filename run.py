"""
Entry point

Run a feed sync from a source checkout:
    python run.py              # full download
    python run.py --delta      # only what changed since the last completed run

Environment configuration:
    - put FAMLY_USERNAME / FAMLY_PASSWORD (and friends) in .env
    - FAMLY_ENV selects development / production / testing settings
"""
from famly_sync.cli import main

if __name__ == '__main__':
    main()
