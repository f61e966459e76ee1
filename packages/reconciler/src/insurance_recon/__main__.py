import sys

from insurance_recon.cli import main

sys.exit(main())
