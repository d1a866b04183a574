import ckbdeploy.cli
import sys

sys.exit(ckbdeploy.cli.main())
