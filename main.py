#!/usr/bin/env python3
"""
Main CLI entrypoint for the static site build pipeline.
"""

import logging

from dotenv import load_dotenv

from cli.devsite import devsite

# Load environment variables
load_dotenv()


def main():
    logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
    devsite()


if __name__ == '__main__':
    main()
