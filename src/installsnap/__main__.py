import sys

from installsnap.cli import main

sys.exit(main())
