#!/usr/bin/env python
# -*- coding: utf-8 -*-

import json
import logging
import os
import zlib

import webtest

from cdnrewrite.apps.middleware import CdnRewriteMiddleware
from cdnrewrite.rewrite.hooks import RewriteHooks


CONFIG_FILE = os.path.join(os.path.dirname(os.path.realpath(__file__)), 'config_test.yaml')

PAGE = u"""<html>
<head>
<link rel="stylesheet" href="https://www.example.com/wp-content/themes/t/style.css?ver=6.1">
<script src="/wp-content/plugins/private/tracker.js"></script>
</head>
<body>
<img src="/wp-content/uploads/caf\xe9.jpg" alt="caf\xe9">
<a href="/about/">About</a>
</body>
</html>"""

PAGE_REWRITTEN = u"""<html>
<head>
<link rel="stylesheet" href="https://cdn.example.com/wp-content/themes/t/style.css?ver=6.1">
<script src="/wp-content/plugins/private/tracker.js"></script>
</head>
<body>
<img src="//cdn.example.com/wp-content/uploads/caf\xe9.jpg" alt="caf\xe9">
<a href="/about/">About</a>
</body>
</html>"""

POSTS = [{'id': 1,
          'link': 'https://www.example.com/hello/',
          'featured_image': 'https://www.example.com/wp-content/uploads/hello.jpg',
          'content': {'rendered': '<img src="/wp-content/uploads/inline.png">'}}]

POSTS_REWRITTEN = [{'id': 1,
                    'link': 'https://www.example.com/hello/',
                    'featured_image': 'https://cdn.example.com/wp-content/uploads/hello.jpg',
                    'content': {'rendered': '<img src="//cdn.example.com/wp-content/uploads/inline.png">'}}]


# ============================================================================
def _response(start_response, body, content_type, status='200 OK', headers=None):
    headers = [('Content-Type', content_type),
               ('Content-Length', str(len(body)))] + (headers or [])

    start_response(status, headers)
    return [body]


def site_app(environ, start_response):
    path = environ['PATH_INFO']

    if path == '/image.png':
        return _response(start_response, b'\x89PNG "/a.jpg"', 'image/png')

    if path == '/robots.txt':
        return _response(start_response, b'Sitemap: /sitemap.jpg\n', 'text/plain')

    if path == '/latin1':
        return _response(start_response, PAGE.encode('iso-8859-1'),
                         'text/html; charset=ISO-8859-1')

    if path == '/deflate':
        return _response(start_response, zlib.compress(PAGE.encode('utf-8')),
                         'text/html; charset=utf-8', headers=[('Content-Encoding', 'deflate')])

    if path == '/not-modified':
        start_response('304 Not Modified', [])
        return []

    if path == '/lazy':
        return lazy_app(environ, start_response)

    if path == '/write':
        write = start_response('200 OK', [('Content-Type', 'text/html')])
        write(b'<img src="/a.jpg">')
        return [b'<img src="/b.jpg">']

    if path == '/wp-json/wp/v2/posts':
        return _response(start_response, json.dumps(POSTS).encode('utf-8'),
                         'application/json; charset=UTF-8')

    if path == '/wp-json/wp/v2/missing':
        body = json.dumps({'code': 'rest_no_route', 'data': {'image': '/404.jpg'}})
        return _response(start_response, body.encode('utf-8'),
                         'application/json; charset=UTF-8', status='404 Not Found')

    if path == '/wp-json/invalid':
        return _response(start_response, b'{"image": "/a.jpg",',
                         'application/json; charset=UTF-8')

    return _response(start_response, PAGE.encode('utf-8'), 'text/html; charset=utf-8')


def lazy_app(environ, start_response):
    start_response('200 OK', [('Content-Type', 'text/html')])
    yield b'<img src="/a.jpg">'
    yield b'<img src="https://www.example.com/b.jpg">'


# ============================================================================
class TestCdnRewriteMiddleware(object):
    @classmethod
    def setup_class(cls):
        cls.app = CdnRewriteMiddleware(site_app, config_file=CONFIG_FILE)
        cls.testapp = webtest.TestApp(cls.app, extra_environ={'HTTP_HOST': 'www.example.com'})

    def test_page_rewritten(self):
        resp = self.testapp.get('/')

        assert resp.content_type == 'text/html'
        assert resp.content_length == len(resp.body)
        assert resp.body.decode('utf-8') == PAGE_REWRITTEN

    def test_page_latin1(self):
        resp = self.testapp.get('/latin1')

        assert resp.content_length == len(resp.body)
        assert resp.body == PAGE_REWRITTEN.encode('iso-8859-1')

    def test_post_not_rewritten(self):
        resp = self.testapp.post('/', {'a': 'b'})
        assert resp.body.decode('utf-8') == PAGE

    def test_head_not_rewritten(self):
        resp = self.testapp.head('/')
        assert resp.content_length == len(PAGE.encode('utf-8'))

    def test_excluded_requests(self):
        assert self.testapp.get('/wp-admin/').body.decode('utf-8') == PAGE
        assert self.testapp.get('/?p=1&preview=true').body.decode('utf-8') == PAGE
        assert self.testapp.get('/robots.txt').body == b'Sitemap: /sitemap.jpg\n'

    def test_binary_not_rewritten(self):
        assert self.testapp.get('/image.png').body == b'\x89PNG "/a.jpg"'

    def test_encoded_not_rewritten(self):
        resp = self.testapp.get('/deflate')
        assert zlib.decompress(resp.body).decode('utf-8') == PAGE

    def test_not_modified(self):
        resp = self.testapp.get('/not-modified', status=304)
        assert resp.body == b''

    def test_lazy_start_response(self):
        resp = self.testapp.get('/lazy')
        assert resp.body == b'<img src="//cdn.example.com/a.jpg"><img src="https://cdn.example.com/b.jpg">'
        assert resp.content_length == len(resp.body)

    def test_write_callable(self):
        resp = self.testapp.get('/write')
        assert resp.body == b'<img src="//cdn.example.com/a.jpg"><img src="//cdn.example.com/b.jpg">'

    def test_other_host(self):
        resp = self.testapp.get('/', extra_environ={'HTTP_HOST': 'staging.example.com'})
        text = resp.body.decode('utf-8')

        assert 'href="https://www.example.com/wp-content/themes/t/style.css?ver=6.1"' in text
        assert 'src="//cdn.example.com/wp-content/uploads/caf\xe9.jpg"' in text

    def test_idempotent(self):
        app = CdnRewriteMiddleware(lambda environ, start_response: _response(
                                   start_response, PAGE_REWRITTEN.encode('utf-8'), 'text/html'),
                                   config_file=CONFIG_FILE)

        resp = webtest.TestApp(app, extra_environ={'HTTP_HOST': 'www.example.com'}).get('/')
        assert resp.body.decode('utf-8') == PAGE_REWRITTEN

    # REST
    def test_rest_rewritten(self):
        resp = self.testapp.get('/wp-json/wp/v2/posts')

        assert resp.json == POSTS_REWRITTEN
        assert resp.content_length == len(resp.body)

    def test_rest_method_override(self):
        resp = self.testapp.post('/wp-json/wp/v2/posts', headers={'X-HTTP-Method-Override': 'GET'})
        assert resp.json == POSTS_REWRITTEN

    def test_rest_post_not_rewritten(self):
        resp = self.testapp.post('/wp-json/wp/v2/posts')
        assert resp.json == POSTS

    def test_rest_error_not_rewritten(self):
        resp = self.testapp.get('/wp-json/wp/v2/missing', status=404)
        assert resp.json['data']['image'] == '/404.jpg'

    def test_rest_invalid_json(self):
        resp = self.testapp.get('/wp-json/invalid')
        assert resp.body == b'{"image": "/a.jpg",'


# ============================================================================
class TestMiddlewareHooks(object):
    def _get(self, hooks, path='/', custom_config=None):
        app = CdnRewriteMiddleware(site_app, config_file=CONFIG_FILE,
                                   custom_config=custom_config, hooks=hooks)

        testapp = webtest.TestApp(app, extra_environ={'HTTP_HOST': 'www.example.com'})
        return testapp.get(path)

    def test_bypass_hook(self):
        hooks = RewriteHooks(bypass_rewrite=lambda context: True)
        assert self._get(hooks).body.decode('utf-8') == PAGE

    def test_relative_hook(self):
        hooks = RewriteHooks(rewrite_relative_urls=lambda: False)
        text = self._get(hooks).body.decode('utf-8')

        assert 'href="https://cdn.example.com/wp-content/themes/t/style.css?ver=6.1"' in text
        assert 'src="/wp-content/uploads/caf\xe9.jpg"' in text

    def test_error_in_hook_sends_original(self, caplog):
        def after(contents):
            raise ValueError('hook failed')

        hooks = RewriteHooks(contents_after_rewrite=after)

        with caplog.at_level(logging.ERROR):
            resp = self._get(hooks)

        assert resp.body.decode('utf-8') == PAGE
        assert resp.content_length == len(resp.body)
        assert 'Error rewriting contents' in caplog.text

    def test_incomplete_config(self):
        resp = self._get(None, custom_config={'cdn_hostname': ''})
        assert resp.body.decode('utf-8') == PAGE

    def test_rest_bypass_hook_called_once(self):
        calls = []

        def count_calls(context):
            calls.append(context.path)
            return False

        resp = self._get(RewriteHooks(bypass_rewrite=count_calls), path='/wp-json/wp/v2/posts')

        assert resp.json == POSTS_REWRITTEN
        assert calls == ['/wp-json/wp/v2/posts']
