import sys

from envkeys.cli import main

sys.exit(main())
