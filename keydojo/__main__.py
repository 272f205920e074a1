import sys

from keydojo.cli import main

sys.exit(main())
