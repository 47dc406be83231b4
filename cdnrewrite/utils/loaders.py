"""
This module provides loaders for settings files from the local
file system or from installed packages
"""

import os
import re
import pkgutil

from io import BytesIO

import yaml

from cdnrewrite.utils.io import no_except_close


# ============================================================================
def init_yaml_env_vars():
    """Initializes the yaml parser to be able to set
    the value of fields from environment variables

    :rtype: None
    """
    env_rx = re.compile(r'\$\{[^}]+\}')

    yaml.add_implicit_resolver('!envvar', env_rx)

    def envvar_constructor(loader, node):
        value = loader.construct_scalar(node)
        value = os.path.expandvars(value)
        return value

    yaml.add_constructor('!envvar', envvar_constructor)


# ============================================================================
def load_py_name(string):
    import importlib

    string = string.split(':', 1)
    mod = importlib.import_module(string[0])
    return getattr(mod, string[1])


# =================================================================
def from_file_url(url):
    """ Convert from file:// url to file path
    """
    if url.startswith('file://'):
        url = url[len('file://'):].replace('/', os.path.sep)

    return url


# =================================================================
def load(filename):
    if filename.startswith('pkg://'):
        return PackageLoader().load(filename)

    return LocalFileLoader().load(filename)


# =============================================================================
def load_yaml_config(config_file):
    config = None
    configdata = None
    try:
        configdata = load(config_file)
        config = yaml.load(configdata, Loader=yaml.Loader)
    finally:
        no_except_close(configdata)

    return config


# =============================================================================
def load_env_config(env_var, default_file=''):
    """Load the yaml config file named by env_var, or default_file if unset

    :param str env_var: environment variable holding the config path
    :param str default_file: path used when env_var is not set
    :rtype: dict
    """
    configfile = os.environ.get(env_var, default_file)
    config = None

    if configfile:
        configfile = os.path.expandvars(configfile)

        config = load_yaml_config(configfile)

    return config or {}


# =================================================================
class PackageLoader(object):
    def load(self, url):
        if url.startswith('pkg://'):
            url = url[len('pkg://'):]

        # package/path/file
        pkg_split = url.split('/', 1)
        if len(pkg_split) == 1:
            raise IOError('Not a package path: ' + url)

        data = pkgutil.get_data(pkg_split[0], pkg_split[1])
        if data is None:
            raise IOError('Package data not found: ' + url)

        buff = BytesIO(data)
        buff.name = url
        return buff


# =================================================================
class LocalFileLoader(PackageLoader):
    def load(self, url):
        """
        Load a file-like reader from the local file system
        """

        # if starting with . or /, can only be a file path..
        file_only = url.startswith(('/', '.'))

        # convert to filename
        filename = from_file_url(url)
        if filename != url:
            file_only = True
            url = filename

        try:
            return open(url, 'rb')

        except IOError:
            if file_only:
                raise

            return super(LocalFileLoader, self).load(url)


# ============================================================================
init_yaml_env_vars()
