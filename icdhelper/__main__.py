"""Allow running as ``python -m icdhelper``."""

import sys

from .main import main

sys.exit(main())
