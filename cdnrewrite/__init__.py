from cdnrewrite.version import __version__

DEFAULT_CONFIG = './config.yaml'

DEFAULT_SETTINGS_FILE = 'pkg://cdnrewrite/default_config.yaml'

CONFIG_ENV_VAR = 'CDN_REWRITE_CONFIG'
