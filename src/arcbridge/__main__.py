"""arcbridge CLI - entry point when run as `python -m arcbridge`"""

from arcbridge.cli import main

if __name__ == "__main__":
    main()
