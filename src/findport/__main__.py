import sys

from findport.cli import main

sys.exit(main())
