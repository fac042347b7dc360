"""
Entry point for ``python -m tooldl``.
"""

from tooldl.main import main

if __name__ == "__main__":
    main()
