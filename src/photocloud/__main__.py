"""Allows `python -m photocloud`."""
from photocloud.main import main

if __name__ == "__main__":
    main()
