import sys

from signmatch.main import main

sys.exit(main())
