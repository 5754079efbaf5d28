"""Well-known names shared with the rest of the network fabric."""

from pathlib import Path

# Fallback carrier for the Pod CIDR when ``spec.podCIDR`` is unset.
POD_CIDR_ANNOTATION = "kube-router.io/pod-cidr"

NODE_NAME_ENV = "NODE_NAME"

DEFAULT_CNI_CONF_PATH = Path("/etc/cni/net.d/10-kuberouter.conflist")
DEFAULT_CONFIG_PATH = Path("/etc/kube-podcidr/config.yaml")

IPAM_KEY = "ipam"
PLUGINS_KEY = "plugins"
SUBNET_KEY = "subnet"
