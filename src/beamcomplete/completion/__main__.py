"""
Entry point for running the completion service as a module.

Usage:
    python -m beamcomplete.completion [--model MODEL]
"""

from beamcomplete.completion.service import main

if __name__ == '__main__':
    main()
