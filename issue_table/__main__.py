"""Allow running as ``python -m issue_table``."""

from issue_table.cli import main

if __name__ == "__main__":
    main()
