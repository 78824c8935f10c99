import sys

from ingestkit_unnest.cli import main

sys.exit(main())
