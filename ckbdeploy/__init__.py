import ckbdeploy.cli
import ckbdeploy.collector
import ckbdeploy.config
import ckbdeploy.core
import ckbdeploy.deployer
import ckbdeploy.error
import ckbdeploy.rpc
