from cdnrewrite.rewrite.dispatch import bypass_rewrite_rest


# ============================================================================
class RestResponse(object):
    """Structured REST api result, holding the response data
    along with status and headers, before it is serialized"""

    def __init__(self, data=None, status=200, headers=None):
        self.data = data
        self.status = status
        self.headers = headers or []

    def get_data(self):
        return self.data

    def set_data(self, data):
        self.data = data


# ============================================================================
class RestError(Exception):
    """Error result of a REST api call, never rewritten"""

    def __init__(self, code, message, status=500, data=None):
        super(RestError, self).__init__(message)
        self.code = code
        self.message = message
        self.status = status
        self.data = data


# ============================================================================
def rewrite_rest_result(result, context, payload_rewriter, hooks=None,
                        check_bypass=True):
    """Rewrite urls in the result of a REST api request.

    :param result: a RestResponse, an error, or raw structured data
    :param RequestContext context: current request
    :param JSONPayloadRewriter payload_rewriter: structured data rewriter
    :param RewriteHooks hooks: extension points
    :param bool check_bypass: run the REST bypass gate, False if already decided
    :return: the result, rewritten if applicable
    """
    if check_bypass and bypass_rewrite_rest(context, hooks):
        return result

    # don't touch errors
    if isinstance(result, Exception):
        return result

    if isinstance(result, RestResponse):
        data = result.get_data()
        rewritten = payload_rewriter.rewrite(data)
        if rewritten is not data:
            result.set_data(rewritten)

        return result

    return payload_rewriter.rewrite(result)
