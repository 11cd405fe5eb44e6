import sys

from httpgauge.cli import main

sys.exit(main())
