"""Entry point: ``python -m privacy_blur``."""

import sys

from privacy_blur.main import main

sys.exit(main())
