from cdnrewrite.apps.rest import RestResponse, RestError, rewrite_rest_result
from cdnrewrite.rewrite.dispatch import RequestContext
from cdnrewrite.rewrite.hooks import RewriteHooks
from cdnrewrite.rewrite.json_rewriter import JSONPayloadRewriter
from cdnrewrite.rewrite.regex_rewriters import ContentRewriter
from cdnrewrite.rewrite.rewriteconfig import RewriteConfig


SITE_HOSTNAMES = ['www.example.com']

CONFIG = RewriteConfig('cdn.example.com', ('jpg', 'png'), ())


# ============================================================================
class TestRewriteRestResult(object):
    @classmethod
    def setup_class(cls):
        content_rewriter = ContentRewriter(CONFIG)

        cls.payload_rewriter = JSONPayloadRewriter(
            lambda text: content_rewriter.rewrite(text, SITE_HOSTNAMES))

        cls.get = RequestContext(method='GET', path='/wp-json/wp/v2/media')

    def test_rest_response(self):
        response = RestResponse({'source_url': 'https://www.example.com/a.jpg'},
                                headers=[('X-WP-Total', '1')])

        result = rewrite_rest_result(response, self.get, self.payload_rewriter)

        assert result is response
        assert response.get_data() == {'source_url': 'https://cdn.example.com/a.jpg'}
        assert response.status == 200
        assert response.headers == [('X-WP-Total', '1')]

    def test_rest_response_unchanged(self):
        data = {'title': 'no assets here'}
        response = RestResponse(data)

        assert rewrite_rest_result(response, self.get, self.payload_rewriter) is response
        assert response.get_data() is data

    def test_raw_data(self):
        data = [{'guid': '/wp-content/uploads/a.png'}, {'guid': '/about/'}]

        result = rewrite_rest_result(data, self.get, self.payload_rewriter)

        assert result == [{'guid': '//cdn.example.com/wp-content/uploads/a.png'},
                          {'guid': '/about/'}]

        assert data[0]['guid'] == '/wp-content/uploads/a.png'

    def test_unchanged_returns_original(self):
        data = {'guid': '/about/'}
        assert rewrite_rest_result(data, self.get, self.payload_rewriter) is data

    def test_error_not_rewritten(self):
        error = RestError('rest_forbidden', 'Sorry, not allowed.', status=403,
                          data={'image': '/a.jpg'})

        result = rewrite_rest_result(error, self.get, self.payload_rewriter)

        assert result is error
        assert result.data == {'image': '/a.jpg'}
        assert str(result) == 'Sorry, not allowed.'

    def test_head_rewritten(self):
        head = RequestContext(method='HEAD', path='/wp-json/wp/v2/media')
        result = rewrite_rest_result({'a': '/a.jpg'}, head, self.payload_rewriter)

        assert result == {'a': '//cdn.example.com/a.jpg'}

    def test_post_bypassed(self):
        data = {'a': '/a.jpg'}
        post = RequestContext(method='POST', path='/wp-json/wp/v2/media')

        assert rewrite_rest_result(data, post, self.payload_rewriter) is data

    def test_post_method_override(self):
        context = RequestContext(method='POST', rest_method='GET', path='/wp-json/wp/v2/media')
        result = rewrite_rest_result({'a': '/a.jpg'}, context, self.payload_rewriter)

        assert result == {'a': '//cdn.example.com/a.jpg'}

    def test_admin_bypassed(self):
        data = {'a': '/a.jpg'}
        context = RequestContext(method='GET', path='/wp-json/', is_admin=True)

        assert rewrite_rest_result(data, context, self.payload_rewriter) is data

    def test_bypass_hook(self):
        data = {'a': '/a.jpg'}
        hooks = RewriteHooks(bypass_rewrite=lambda context: True)

        assert rewrite_rest_result(data, self.get, self.payload_rewriter, hooks) is data

    def test_scalar_result(self):
        assert rewrite_rest_result('/a.jpg', self.get, self.payload_rewriter) == '/a.jpg'
        assert rewrite_rest_result(None, self.get, self.payload_rewriter) is None

    def test_bypass_already_decided(self):
        post = RequestContext(method='POST', path='/wp-json/wp/v2/media')
        result = rewrite_rest_result({'a': '/a.jpg'}, post, self.payload_rewriter,
                                     check_bypass=False)

        assert result == {'a': '//cdn.example.com/a.jpg'}
