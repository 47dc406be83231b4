import json
import logging

import webencodings
from warcio.statusandheaders import StatusAndHeaders

from cdnrewrite import DEFAULT_CONFIG
from cdnrewrite.rewrite.rewriteconfig import RewriteConfig, load_settings
from cdnrewrite.rewrite.hooks import RewriteHooks
from cdnrewrite.rewrite.regex_rewriters import ContentRewriter
from cdnrewrite.rewrite.json_rewriter import JSONPayloadRewriter
from cdnrewrite.rewrite.dispatch import (RequestContext, RequestClassifier,
                                         bypass_rewrite, bypass_rewrite_rest,
                                         get_site_hostnames)
from cdnrewrite.apps.rest import rewrite_rest_result
from cdnrewrite.utils.exceptions import CdnRewriteException
from cdnrewrite.utils.io import read_all


# ============================================================================
class CdnRewriteMiddleware(object):
    """WSGI middleware rewriting asset urls in the responses of the
    wrapped app to point at the CDN hostname.

    Page responses (text, html, css, ...) are rewritten as text for
    GET requests. Responses under the REST prefix are decoded as JSON
    and rewritten as structured data for GET and HEAD requests.

    The response is buffered fully before rewriting. If anything goes
    wrong while rewriting, the original response is sent unchanged.
    """
    JSON_TYPES = ('application/json',)

    NO_BODY_STATUS = (204, 304)

    IDENTITY_ENCODINGS = ('', 'identity')

    def __init__(self, app, config=None, config_file=DEFAULT_CONFIG,
                 custom_config=None, hooks=None):
        """
        :param app: The WSGI application to wrap
        :param dict|None config: settings dict, loaded from config_file if not set
        :param str|None config_file: path to the config file
        :param dict|None custom_config: settings overriding the loaded ones
        :param RewriteHooks|None hooks: extension points, loaded from settings if not set
        """
        self.app = app

        if config is None:
            config = load_settings(config_file, custom_config)

        self.config = config

        self.rewrite_config = RewriteConfig.from_settings(config)
        self.hooks = hooks or RewriteHooks.from_config(config)
        self.classifier = RequestClassifier.from_config(config)

        self.site_url = config.get('site_url')
        self.rest_prefix = config.get('rest_prefix')
        self.rewrite_content_types = set(ct.lower() for ct in
                                         config.get('rewrite_content_types') or [])

        self.content_rewriter = ContentRewriter(self.rewrite_config, self.hooks)

        if not self.rewrite_config.is_complete:
            logging.info('CDN rewriting disabled: cdn_hostname or included_file_extensions not set')
        else:
            logging.debug('CDN rewriting to {0} for: {1}'.format(
                          self.rewrite_config.cdn_hostname,
                          ', '.join(self.rewrite_config.included_extensions)))

    def is_rest_request(self, context):
        return bool(self.rest_prefix) and context.path.startswith(self.rest_prefix)

    def should_bypass(self, context, is_rest):
        if not self.rewrite_config.is_complete:
            return True

        if is_rest:
            return bypass_rewrite_rest(context, self.hooks)

        return bypass_rewrite(context, self.hooks)

    def __call__(self, environ, start_response):
        context = RequestContext.from_environ(environ, self.classifier)
        is_rest = self.is_rest_request(context)

        if self.should_bypass(context, is_rest):
            logging.debug('Rewrite bypassed: {0}'.format(context))
            return self.app(environ, start_response)

        captured = []
        written = []

        def capture_start_response(status, headers, exc_info=None):
            captured[:] = [(StatusAndHeaders(status, list(headers)), exc_info)]
            return written.append

        app_iter = self.app(environ, capture_start_response)
        body_iter = iter(app_iter)

        first = b''
        if not captured:
            first = next(body_iter, b'')

        if not captured:
            if hasattr(app_iter, 'close'):
                app_iter.close()

            raise CdnRewriteException('start_response not called by wrapped app',
                                      url=context.path)

        status_headers, exc_info = captured[0]

        if not self.should_rewrite(status_headers, is_rest, exc_info):
            start_response(status_headers.statusline, status_headers.headers, exc_info)
            return self._chain_iter(written + [first], body_iter, app_iter)

        body = b''.join(written) + first + read_all(_RemainingIter(body_iter, app_iter))

        rewritten = self.rewrite_body(body, status_headers, context, is_rest)

        if rewritten is not body:
            status_headers.replace_header('Content-Length', str(len(rewritten)))

        start_response(status_headers.statusline, status_headers.headers)
        return [rewritten]

    def should_rewrite(self, status_headers, is_rest, exc_info=None):
        if exc_info:
            return False

        try:
            status = int(status_headers.get_statuscode())
        except ValueError:
            return False

        if status < 200 or status in self.NO_BODY_STATUS:
            return False

        # don't touch api errors
        if is_rest and status >= 400:
            return False

        content_encoding = (status_headers.get_header('Content-Encoding') or '').strip().lower()
        if content_encoding not in self.IDENTITY_ENCODINGS:
            return False

        mime = self.get_mime(status_headers)

        if is_rest:
            return mime in self.JSON_TYPES or mime.endswith('+json')

        return mime in self.rewrite_content_types

    @staticmethod
    def get_mime(status_headers):
        content_type = status_headers.get_header('Content-Type') or ''
        return content_type.split(';', 1)[0].strip().lower()

    @staticmethod
    def get_encoding(status_headers):
        content_type = status_headers.get_header('Content-Type') or ''
        charset = None

        parts = content_type.lower().split('charset=', 1)
        if len(parts) == 2:
            charset = parts[1].split(';', 1)[0].strip().strip('"\'')

        return (charset and webencodings.lookup(charset)) or webencodings.UTF8

    def rewrite_body(self, body, status_headers, context, is_rest):
        """Rewrite the buffered response body, returning the body
        itself if unchanged or if rewriting fails

        :param bytes body: full response body
        :param StatusAndHeaders status_headers: response status and headers
        :param RequestContext context: current request
        :param bool is_rest: rewrite as structured REST data
        :rtype: bytes
        """
        if not body:
            return body

        try:
            codec = self.get_encoding(status_headers).codec_info.name

            try:
                text = body.decode(codec)
            except UnicodeDecodeError:
                codec = 'iso-8859-1'
                text = body.decode(codec)

            site_hostnames = get_site_hostnames(context.host, self.site_url, self.hooks)

            if is_rest:
                rewritten = self.rewrite_json_text(text, context, site_hostnames)
            else:
                rewritten = self.content_rewriter.rewrite(text, site_hostnames)

            if rewritten is None or rewritten == text:
                return body

            logging.debug('Rewrote urls for: {0}'.format(context))
            return rewritten.encode(codec)

        except Exception:
            logging.exception('Error rewriting response for {0}, sending original'.format(context))
            return body

    def rewrite_json_text(self, text, context, site_hostnames):
        try:
            data = json.loads(text)
        except ValueError:
            return None

        payload_rewriter = JSONPayloadRewriter(
            lambda string: self.content_rewriter.rewrite(string, site_hostnames))

        result = rewrite_rest_result(data, context, payload_rewriter, self.hooks,
                                     check_bypass=False)
        if result is data:
            return None

        return json.dumps(result, ensure_ascii=False)

    @staticmethod
    def _chain_iter(buffs, body_iter, app_iter):
        try:
            for buff in buffs:
                if buff:
                    yield buff

            for buff in body_iter:
                yield buff

        finally:
            if hasattr(app_iter, 'close'):
                app_iter.close()


# ============================================================================
class _RemainingIter(object):
    """Remainder of a partially consumed app iterable, closing
    the original iterable when closed"""

    def __init__(self, body_iter, app_iter):
        self.body_iter = body_iter
        self.app_iter = app_iter

    def __iter__(self):
        return self.body_iter

    def close(self):
        if hasattr(self.app_iter, 'close'):
            self.app_iter.close()
