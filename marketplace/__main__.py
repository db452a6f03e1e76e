import sys

from marketplace.console import main

sys.exit(main())
