r"""
Immutable rewrite settings, validated from a settings dict.

>>> RewriteConfig.from_settings({'cdn_hostname': 'https://cdn.example.com/assets/',
...                              'included_file_extensions': '.jpg\n png \n\n.JPG'})
RewriteConfig(cdn_hostname='cdn.example.com', included_extensions=('jpg', 'png', 'JPG'), excluded_strings=())

>>> RewriteConfig.from_settings({'cdn_hostname': 'cdn.example.com'}).is_complete
False

>>> RewriteConfig('cdn.example.com', ('css',), ()).is_complete
True

>>> parse_list_setting('a\r\n  b  \n\n')
('a', 'b')

>>> parse_list_setting(['.js', '', ' .css'], strip_dot=True)
('js', 'css')

>>> validate_cdn_hostname('  //cdn.example.com:8443/path ')
'cdn.example.com:8443'
"""

import os
import re
import logging

from collections import namedtuple

import yaml

from cdnrewrite import DEFAULT_CONFIG, DEFAULT_SETTINGS_FILE, CONFIG_ENV_VAR
from cdnrewrite.utils.exceptions import ConfigException
from cdnrewrite.utils.loaders import load_yaml_config, load_env_config


SCHEME_REGEX = re.compile(r'^(?:[a-z][a-z0-9+.-]*:)?//', re.I)


# ============================================================================
def parse_list_setting(value, strip_dot=False):
    """Parse a newline-delimited setting, or a list, into a tuple of
    trimmed, non-empty, unique entries, keeping the original order
    """
    if not value:
        return ()

    if isinstance(value, str):
        value = value.splitlines()

    entries = []
    for entry in value:
        if entry is None:
            continue

        entry = str(entry).strip()
        if strip_dot:
            entry = entry.lstrip('.')

        if entry and entry not in entries:
            entries.append(entry)

    return tuple(entries)


# ============================================================================
def validate_cdn_hostname(value):
    """Reduce a configured CDN hostname or URL to its host[:port] part"""
    if not value:
        return ''

    value = str(value).strip()
    value = SCHEME_REGEX.sub('', value)
    return value.split('/', 1)[0].strip()


# ============================================================================
class RewriteConfig(namedtuple('RewriteConfig', ['cdn_hostname',
                                                 'included_extensions',
                                                 'excluded_strings'])):
    """Read-only snapshot of the settings used for one rewrite pass.

    :param str cdn_hostname: CDN hostname, without scheme
    :param tuple included_extensions: file extensions, without leading dot
    :param tuple excluded_strings: case-sensitive substrings to leave untouched
    """
    __slots__ = ()

    @property
    def is_complete(self):
        """Rewriting is a no-op unless both the CDN hostname and
        the extension list are set

        :rtype: bool
        """
        return bool(self.cdn_hostname and self.included_extensions)

    @classmethod
    def from_settings(cls, settings):
        """Create a config from a settings dict, as loaded from yaml

        :param dict settings: settings, keys as in default_config.yaml
        :rtype: RewriteConfig
        """
        settings = settings or {}

        return cls(validate_cdn_hostname(settings.get('cdn_hostname')),
                   parse_list_setting(settings.get('included_file_extensions'),
                                      strip_dot=True),
                   parse_list_setting(settings.get('excluded_strings')))


# ============================================================================
def load_settings(config_file=DEFAULT_CONFIG, custom_config=None):
    """Load settings: packaged defaults, then the config file (or the file
    named by the CDN_REWRITE_CONFIG env var), then custom overrides

    :param str|None config_file: path to the config file, None to skip
    :param dict|None custom_config: settings overriding the loaded ones
    :rtype: dict
    """
    config = load_yaml_config(DEFAULT_SETTINGS_FILE)

    if config_file:
        explicit = config_file != DEFAULT_CONFIG or CONFIG_ENV_VAR in os.environ
        try:
            file_config = load_env_config(CONFIG_ENV_VAR, config_file)
        except yaml.YAMLError as e:
            raise ConfigException('Invalid config: {0}'.format(e), url=config_file)

        except IOError as e:
            if explicit:
                raise ConfigException('Unable to load config: {0}'.format(e),
                                      url=config_file)

            logging.debug('No config file loaded: {0}'.format(e))
            file_config = {}

        if not isinstance(file_config, dict):
            raise ConfigException('Config must be a mapping', url=config_file)

        config.update(file_config)

    if custom_config:
        config.update(custom_config)

    return config
