import sys

from ledgersign.cli import main

sys.exit(main())
