import sys

from pairedsens.cli import main

sys.exit(main())
