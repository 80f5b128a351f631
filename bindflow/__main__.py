import sys

from bindflow.cli import main

sys.exit(main())
