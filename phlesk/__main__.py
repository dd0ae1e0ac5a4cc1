#!/usr/bin/env python3
"""
Phlesk module entry point
Allows running: python3 -m phlesk
"""

from phlesk.cli import main

if __name__ == '__main__':
    main()
