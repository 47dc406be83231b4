r"""
>>> get_site_hostnames(' www.example.com%0A ', 'https://other.example.com/')
['www.example.com']

>>> get_site_hostnames('', 'https://Other.Example.com:8080/blog/')
['other.example.com']

>>> get_site_hostnames(None, None)
[]

>>> bypass_rewrite(RequestContext(method='GET'))
False

>>> bypass_rewrite(RequestContext(method='HEAD'))
True

>>> bypass_rewrite_rest(RequestContext(method='POST', rest_method='head'))
False

>>> bypass_rewrite(RequestContext(method='GET', is_preview=True))
True
"""

from urllib.parse import urlsplit

from werkzeug.wrappers import Request

from cdnrewrite.rewrite.hooks import RewriteHooks
from cdnrewrite.rewrite.sanitize import sanitize_server_input


REST_METHODS = ('GET', 'HEAD')


# ============================================================================
class RequestContext(object):
    """Request properties the dispatch decision depends on"""

    def __init__(self, method=None, rest_method=None, host=None,
                 path='', query='',
                 is_admin=False, is_trackback=False,
                 is_robots=False, is_preview=False):
        self.method = method
        self.rest_method = rest_method if rest_method is not None else method
        self.host = host
        self.path = path
        self.query = query
        self.is_admin = is_admin
        self.is_trackback = is_trackback
        self.is_robots = is_robots
        self.is_preview = is_preview

    @staticmethod
    def get_rest_method(request):
        """Request method as seen by a REST api: a POST may
        override its method by header or by ``_method`` param
        """
        method = request.method
        if method == 'POST':
            override = (request.headers.get('X-HTTP-Method-Override') or
                        request.args.get('_method'))
            if override:
                method = override

        return method.upper()

    @classmethod
    def from_environ(cls, environ, classifier=None):
        """Build a context from a WSGI environ

        :param dict environ: The WSGI environment dictionary
        :param RequestClassifier classifier: classifier for admin/robots/etc flags
        :rtype: RequestContext
        """
        classifier = classifier or RequestClassifier()
        request = Request(environ)

        path = request.path
        args = request.args

        return cls(method=environ.get('REQUEST_METHOD'),
                   rest_method=cls.get_rest_method(request),
                   host=environ.get('HTTP_HOST'),
                   path=path,
                   query=environ.get('QUERY_STRING', ''),
                   **classifier.classify(path, args))

    def __repr__(self):
        return '{0}({1} {2})'.format(self.__class__.__name__, self.method, self.path)


# ============================================================================
class RequestClassifier(object):
    """Default classification of admin, trackback, robots and preview
    requests by path and query params
    """
    TRUTHY = ('1', 'true', 'yes', 'on')

    def __init__(self, admin_prefixes=('/wp-admin/',),
                 robots_paths=('/robots.txt',),
                 trackback_suffixes=('/trackback/',),
                 preview_params=('preview',)):
        self.admin_prefixes = tuple(admin_prefixes or ())
        self.robots_paths = tuple(robots_paths or ())
        self.trackback_suffixes = tuple(trackback_suffixes or ())
        self.preview_params = tuple(preview_params or ())

    def is_admin(self, path, args):
        return any(path.startswith(prefix) or path == prefix.rstrip('/')
                   for prefix in self.admin_prefixes)

    def is_trackback(self, path, args):
        if args.get('tb') == '1':
            return True

        return any(path.endswith(suffix) or path.endswith(suffix.rstrip('/'))
                   for suffix in self.trackback_suffixes)

    def is_robots(self, path, args):
        return path in self.robots_paths

    def is_preview(self, path, args):
        return any((args.get(param) or '').lower() in self.TRUTHY
                   for param in self.preview_params)

    def classify(self, path, args):
        return dict(is_admin=self.is_admin(path, args),
                    is_trackback=self.is_trackback(path, args),
                    is_robots=self.is_robots(path, args),
                    is_preview=self.is_preview(path, args))

    @classmethod
    def from_config(cls, config):
        rules = config.get('request_rules') or {}
        return cls(**rules)


# ============================================================================
def get_site_hostnames(host_header, site_url=None, hooks=None):
    """Hostnames considered the site origin for this request, in order:
    the sanitized host header, or the host of the configured site url,
    as extended by the site_hostnames hook

    :rtype: list[str]
    """
    hooks = hooks or RewriteHooks()

    site_hostname = ''
    if host_header:
        site_hostname = sanitize_server_input(host_header)

    if not site_hostname and site_url:
        if '//' not in site_url:
            site_url = '//' + site_url

        site_hostname = urlsplit(site_url).hostname or ''

    hostnames = [site_hostname] if site_hostname else []
    hostnames = hooks.site_hostnames(hostnames) or []

    results = []
    for hostname in hostnames:
        if hostname and isinstance(hostname, str) and hostname not in results:
            results.append(hostname)

    return results


# ============================================================================
def is_excluded_request(context, hooks):
    return bool(hooks.exclude_admin(context.is_admin, context) or
                context.is_trackback or
                context.is_robots or
                context.is_preview)


# ============================================================================
def bypass_rewrite(context, hooks=None):
    """Decide if rewriting of buffered page output is skipped.
    Only plain GET requests are rewritten.

    :param RequestContext context: current request
    :param RewriteHooks hooks: extension points
    :rtype: bool
    """
    hooks = hooks or RewriteHooks()

    if hooks.bypass_rewrite(context):
        return True

    if context.method != 'GET':
        return True

    return is_excluded_request(context, hooks)


# ============================================================================
def bypass_rewrite_rest(context, hooks=None):
    """Decide if rewriting of a REST api response is skipped.
    GET and HEAD requests are rewritten.

    :param RequestContext context: current request
    :param RewriteHooks hooks: extension points
    :rtype: bool
    """
    hooks = hooks or RewriteHooks()

    if hooks.bypass_rewrite(context):
        return True

    method = (context.rest_method or '').upper()
    if method not in REST_METHODS:
        return True

    return is_excluded_request(context, hooks)
