r"""
# absolute and protocol-relative urls on a site hostname
>>> _test_rw('https://www.example.com/wp-content/a.jpg')
'https://cdn.example.com/wp-content/a.jpg'

>>> _test_rw('//WWW.Example.com/a.jpg')
'//cdn.example.com/a.jpg'

>>> _test_rw(r'https:\/\/www.example.com\/a.jpg')
'https:\\/\\/cdn.example.com\\/a.jpg'

# relative and escaped relative urls
>>> _test_rw('/wp-content/uploads/a.jpg')
'//cdn.example.com/wp-content/uploads/a.jpg'

>>> _test_rw(r'\/wp-content\/a.jpg')
'\\/\\/cdn.example.com\\/wp-content\\/a.jpg'

>>> _test_rw('/wp-content/uploads/a.jpg', rewrite_relative=False)
'/wp-content/uploads/a.jpg'

# other hosts and document-relative paths are left alone
>>> _test_rw('https://other.example.org/a.jpg')
'https://other.example.org/a.jpg'

>>> _test_rw('images/a.jpg')
'images/a.jpg'

# already on the cdn, or excluded
>>> _test_rw('https://CDN.example.com/a.jpg')
'https://CDN.example.com/a.jpg'

>>> _test_rw('/wp-content/plugins/x.js', excluded=['/plugins/'])
'/wp-content/plugins/x.js'

>>> is_excluded('/a/b.js', [])
False

>>> is_excluded('/a/b.js', ['B.js'])
False

# hostnames that aren't text are ignored
>>> rewrite_url('https://www.example.com/a.jpg', [5, None, 'www.example.com'], 'cdn.example.com')
'https://cdn.example.com/a.jpg'
"""

import re


# ============================================================================
def is_excluded(url, excluded_strings):
    """Return True if any of the excluded strings is a
    (case-sensitive) substring of the url
    """
    if not excluded_strings:
        return False

    return any(excluded in url for excluded in excluded_strings)


# ============================================================================
def icase_rx(string, prefix=''):
    """Compile a case-insensitive pattern for the literal string,
    optionally preceded by the prefix pattern"""
    return re.compile(prefix + re.escape(string), re.I)


# ============================================================================
class CdnUrlRewriter(object):
    """Rewrites a single url found in content to use the CDN hostname.

    Urls on one of the site hostnames have the hostname replaced in place,
    keeping scheme and escaping as is. Host-relative urls are prefixed with
    a protocol-relative CDN origin when relative rewriting is enabled.
    """
    SLASH = '/'
    ESC_SLASH = '\\/'

    # //host or \/\/host
    ORIGIN_PREFIX = r'(?://|\\/\\/)'

    def __init__(self, cdn_hostname, site_hostnames=None,
                 excluded_strings=None, rewrite_relative=True):
        self.cdn_hostname = cdn_hostname
        self.cdn_rx = icase_rx(cdn_hostname) if cdn_hostname else None

        self.site_hostnames = [host for host in (site_hostnames or [])
                               if host and isinstance(host, str)]

        # (origin, hostname) patterns, in hostname order
        self.site_rules = [(icase_rx(host, self.ORIGIN_PREFIX), icase_rx(host))
                           for host in self.site_hostnames]

        self.excluded_strings = excluded_strings or ()
        self.rewrite_relative = rewrite_relative

    def rewrite(self, url):
        if (not self.cdn_hostname or
                is_excluded(url, self.excluded_strings) or
                self.cdn_rx.search(url)):
            return url

        # full url: https://host/..., https:\/\/host\/... or //host/...
        for origin_rx, host_rx in self.site_rules:
            if origin_rx.search(url):
                m = host_rx.search(url)
                return url[:m.start()] + self.cdn_hostname + url[m.end():]

        if self.rewrite_relative:
            if url.startswith(self.SLASH) and not url.startswith(self.SLASH * 2):
                return self.SLASH * 2 + self.cdn_hostname + url

            if url.startswith(self.ESC_SLASH) and not url.startswith(self.ESC_SLASH * 2):
                return self.ESC_SLASH * 2 + self.cdn_hostname + url

        return url

    def __call__(self, url):
        return self.rewrite(url)


# ============================================================================
def rewrite_url(url, site_hostnames, cdn_hostname, excluded_strings=None,
                rewrite_relative=True):
    return CdnUrlRewriter(cdn_hostname, site_hostnames,
                          excluded_strings, rewrite_relative).rewrite(url)


# ============================================================================
def _test_rw(url, excluded=None, rewrite_relative=True):
    return rewrite_url(url, ['www.example.com'], 'cdn.example.com',
                       excluded, rewrite_relative)


if __name__ == "__main__":
    import doctest
    doctest.testmod()
