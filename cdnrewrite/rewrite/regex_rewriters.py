import logging
import re

from functools import lru_cache

from cdnrewrite.rewrite.hooks import RewriteHooks
from cdnrewrite.rewrite.url_rewriter import CdnUrlRewriter


# =================================================================
class CdnUrlRules(object):
    """Single pattern matching urls that end in one of the included
    file extensions, optionally followed by a query string.

    A url starts at the beginning of the text, or right after a quote,
    whitespace, ``=``, ``>``, ``,``, ``;`` or ``url(``. It ends at the
    end of the text, or right before a quote, whitespace, backslash,
    ``?``, ``)``, ``>``, ``,`` or ``&``, optionally preceded by a slash.
    """
    URL_START = r'''(?:(?<=["'\s=>,;])|(?<=url\()|^)'''

    URL_PATH = r'''[^"'\s(=>,;]+\.(?:{0})'''

    URL_QUERY = r'''(?:\?[^/?\\"'\s)>,]+)?'''

    URL_END = r'''(?:(?=/?[?\\"'\s)>,&])|$)'''

    @classmethod
    def compile_rules(cls, extensions):
        ext_regex = '|'.join(re.escape(ext) for ext in extensions)

        regex_str = (cls.URL_START +
                     cls.URL_PATH.format(ext_regex) +
                     cls.URL_QUERY +
                     cls.URL_END)

        # ascii-only whitespace and case folding
        return re.compile(regex_str, re.I | re.ASCII)

    def __init__(self, extensions):
        self.extensions = tuple(extensions)
        if not self.extensions:
            raise ValueError('at least one file extension is required')

        self.regex = self.compile_rules(self.extensions)

    def finditer(self, string):
        return self.regex.finditer(string)


# =================================================================
@lru_cache(maxsize=32)
def get_url_rules(extensions):
    return CdnUrlRules(extensions)


# =================================================================
class ContentRewriter(object):
    """Rewrites all matching asset urls in a text buffer in one
    left-to-right pass. Each match is rewritten independently by a
    :class:`CdnUrlRewriter`.
    """

    def __init__(self, config, hooks=None):
        """
        :param RewriteConfig config: settings for this rewriter
        :param RewriteHooks hooks: extension points, defaults to no-op hooks
        """
        self.config = config
        self.hooks = hooks or RewriteHooks()

        if config.is_complete:
            self.rules = get_url_rules(tuple(config.included_extensions))
        else:
            self.rules = None

    def get_url_rewriter(self, site_hostnames, rewrite_relative=None):
        if rewrite_relative is None:
            rewrite_relative = self.hooks.rewrite_relative_urls()

        return CdnUrlRewriter(self.config.cdn_hostname,
                              site_hostnames,
                              self.config.excluded_strings,
                              rewrite_relative)

    def rewrite(self, contents, site_hostnames, rewrite_relative=None):
        """Rewrite contents, returning the input unchanged if it is not
        text or the config is incomplete. Errors while rewriting, including
        errors raised by hooks, are logged and the original contents returned

        :param str contents: text to rewrite
        :param list site_hostnames: hostnames considered the origin, in order
        :param bool|None rewrite_relative: rewrite host-relative urls,
            if None, determined by the rewrite_relative_urls hook
        :rtype: str
        """
        if not isinstance(contents, str) or not self.rules:
            return contents

        try:
            before = self.hooks.contents_before_rewrite(contents)
            if not isinstance(before, str):
                return before

            url_rewriter = self.get_url_rewriter(site_hostnames, rewrite_relative)

            rewritten = self.rules.regex.sub(lambda m: url_rewriter.rewrite(m.group(0)),
                                             before)

            return self.hooks.contents_after_rewrite(rewritten)

        except Exception:
            logging.exception('Error rewriting contents, returning original')
            return contents

    def __call__(self, contents, site_hostnames, rewrite_relative=None):
        return self.rewrite(contents, site_hostnames, rewrite_relative)


# =================================================================
def rewrite_content(contents, config, site_hostnames, rewrite_relative=True,
                    hooks=None):
    return ContentRewriter(config, hooks).rewrite(contents, site_hostnames,
                                                  rewrite_relative)
