import sys

from ifood_crm.interfaces.cli import main

sys.exit(main())
