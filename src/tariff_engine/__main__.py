import sys

from tariff_engine.cli import main


sys.exit(main())
