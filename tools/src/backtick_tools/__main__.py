import sys

from backtick_tools.server import main

sys.exit(main())
