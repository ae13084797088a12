"""Allow `python -m beamwalk`."""

import sys

from beamwalk.cli import main

sys.exit(main())
