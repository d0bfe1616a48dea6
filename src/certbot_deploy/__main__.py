"""Runs the deploy hooks."""
import sys

from certbot_deploy import main

if __name__ == '__main__':
    sys.exit(main.main())
