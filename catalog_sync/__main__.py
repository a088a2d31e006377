import sys

from catalog_sync.cli.refresh_cli import main

sys.exit(main())
