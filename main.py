"""
ccswitch - automatic switching between multiple model API channels
Entry point for running from a source checkout
"""
import sys
import os

# Ensure the package directory is importable without installation
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


def main():
    """Main entry point - run the command line interface"""
    from ccswitch.cli import main as cli_main
    sys.exit(cli_main())


if __name__ == "__main__":
    main()
