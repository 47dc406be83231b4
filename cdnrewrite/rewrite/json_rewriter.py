import json
import logging

from collections.abc import Mapping


# ============================================================================
class JSONPayloadRewriter(object):
    """Rewrites urls in structured (JSON-serializable) data by running
    the serialized text through a text rewriter and decoding the result.

    Whenever the round trip can't be trusted, the original data is
    returned as is.
    """

    def __init__(self, rewrite_func, ensure_ascii=False):
        """
        :param rewrite_func: function taking and returning text
        :param bool ensure_ascii: escape non-ascii characters when serializing
        """
        self.rewrite_func = rewrite_func
        self.ensure_ascii = ensure_ascii

    @staticmethod
    def is_structured(data):
        return isinstance(data, (Mapping, list, tuple))

    def serialize(self, data):
        return json.dumps(data, ensure_ascii=self.ensure_ascii)

    def deserialize(self, text):
        return json.loads(text)

    def rewrite(self, data):
        if not self.is_structured(data):
            return data

        try:
            text = self.serialize(data)
        except (TypeError, ValueError, RecursionError):
            return data

        if not isinstance(text, str):
            return data

        try:
            rewritten = self.rewrite_func(text)
        except Exception:
            logging.exception('Error rewriting structured data, returning original')
            return data

        if rewritten == text or not isinstance(rewritten, str):
            return data

        try:
            decoded = self.deserialize(rewritten)
        except (TypeError, ValueError, RecursionError):
            return data

        if decoded is None:
            return data

        return decoded

    def __call__(self, data):
        return self.rewrite(data)
