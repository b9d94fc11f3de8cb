import sys

from timetide.cli import main

sys.exit(main())
