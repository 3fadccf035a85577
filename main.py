#!/usr/bin/env python3
"""
Runner for a source checkout - forwards to the hashnote CLI.
"""

import sys
import os

# Add the src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), 'src'))

from hashnote.cli.main import cli

if __name__ == "__main__":
    # If no arguments, show help
    if len(sys.argv) == 1:
        sys.argv.append('--help')

    # `main.py file.js` is shorthand for `main.py attach file.js`
    if len(sys.argv) == 2 and not sys.argv[1].startswith('-') and os.path.isfile(sys.argv[1]):
        sys.argv.insert(1, 'attach')

    cli()
