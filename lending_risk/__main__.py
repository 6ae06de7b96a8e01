"""Allow ``python -m lending_risk``."""
from .cli import main

if __name__ == "__main__":
    main()
