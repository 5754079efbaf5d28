"""oslo.config options for running the bootstrap inside an oslo-based agent.

Host agents configured through oslo.config register these options and call
:func:`settings_from_conf` instead of reading the YAML file.
"""

from pathlib import Path

from oslo_config import cfg

from podcidr.constants import DEFAULT_CNI_CONF_PATH

from .config import AgentConfig, CNIConfig, KubernetesConfig, NodeConfig

GROUP = 'podcidr'

podcidr_opts = [
    cfg.StrOpt('pod_cidr',
               default='',
               help='Pod CIDR to use for this node. When set, the node object '
                    'is not consulted at all.'),
    cfg.StrOpt('hostname_override',
               default='',
               help='Name of the node object to read. Defaults to $NODE_NAME, '
                    'then the host name.'),
    cfg.StrOpt('cni_conf_path',
               default=str(DEFAULT_CNI_CONF_PATH),
               help='CNI configuration file whose ipam.subnet is kept in '
                    'sync with the pod CIDR.'),
    cfg.StrOpt('kubeconfig',
               help='Kubeconfig file. In-cluster credentials are tried first '
                    'when unset.'),
    cfg.BoolOpt('strict_validation',
                default=False,
                help='Also validate the explicit pod CIDR and the node '
                     'spec.podCIDR, not only the node annotation.'),
]


def register_podcidr_opts(conf=cfg.CONF):
    """Register the pod CIDR options in the ``podcidr`` group of ``conf``."""
    conf.register_opts(podcidr_opts, group=GROUP)


def list_opts():
    """Entry point for oslo-config-generator."""
    return [(GROUP, podcidr_opts)]


def settings_from_conf(conf=cfg.CONF):
    """Build an :class:`AgentConfig` from registered oslo.config options."""
    group = conf[GROUP]
    return AgentConfig(
        node=NodeConfig(
            name=group.hostname_override or '',
            pod_cidr=group.pod_cidr or '',
            strict_validation=group.strict_validation,
        ),
        kubernetes=KubernetesConfig(kubeconfig=group.kubeconfig or None),
        cni=CNIConfig(conf_path=Path(group.cni_conf_path)),
    )


def load_settings(config_files, conf=None):
    """Read oslo.config style INI files and return an :class:`AgentConfig`."""
    conf = conf or cfg.ConfigOpts()
    register_podcidr_opts(conf)
    args = []
    for path in config_files:
        args.extend(['--config-file', str(path)])
    conf(args, project='kube-podcidr', default_config_files=[])
    return settings_from_conf(conf)
