from cdnrewrite.utils.loaders import load_py_name
from cdnrewrite.utils.exceptions import ConfigException


# ============================================================================
class RewriteHooks(object):
    """Extension points of the rewrite engine.

    Each hook can be overridden in a subclass, or replaced per instance
    by passing a callable with the same signature, e.g.::

        RewriteHooks(bypass_rewrite=lambda context: context.path.startswith('/feed/'))

    The defaults leave the rewrite untouched.
    """
    HOOK_NAMES = ('bypass_rewrite',
                  'exclude_admin',
                  'contents_before_rewrite',
                  'contents_after_rewrite',
                  'site_hostnames',
                  'rewrite_relative_urls')

    def __init__(self, rewrite_relative_urls_default=True, **hook_funcs):
        self.rewrite_relative_urls_default = rewrite_relative_urls_default

        for name, func in hook_funcs.items():
            if name not in self.HOOK_NAMES:
                raise ConfigException('Unknown rewrite hook: ' + name)

            if func is not None:
                setattr(self, name, func)

    def bypass_rewrite(self, context):
        """Return True to skip rewriting for this request entirely"""
        return False

    def exclude_admin(self, is_admin, context):
        return is_admin

    def contents_before_rewrite(self, contents):
        return contents

    def contents_after_rewrite(self, contents):
        return contents

    def site_hostnames(self, hostnames):
        """Augment or replace the hostnames treated as the origin"""
        return hostnames

    def rewrite_relative_urls(self):
        return self.rewrite_relative_urls_default

    @classmethod
    def from_config(cls, config):
        """Create hooks from the ``hooks`` settings mapping of hook name
        to ``module:function`` import string

        :param dict config: full settings dict
        :rtype: RewriteHooks
        """
        hook_funcs = {}
        for name, py_name in (config.get('hooks') or {}).items():
            try:
                hook_funcs[name] = load_py_name(py_name)
            except (ImportError, AttributeError, ValueError, IndexError) as e:
                raise ConfigException('Unable to load hook {0}: {1}'.format(name, e),
                                      url=py_name)

        return cls(rewrite_relative_urls_default=config.get('rewrite_relative_urls', True),
                   **hook_funcs)
