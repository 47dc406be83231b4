from werkzeug.http import HTTP_STATUS_CODES


# =================================================================
class CdnRewriteException(Exception):
    """Base class for exceptions raised by cdnrewrite"""

    def __init__(self, msg=None, url=None):
        """Initialize a new CdnRewriteException

        :param str|None msg: The message for the error response
        :param str|None url: The URL or location that caused the error
        :rtype: None
        """
        super(CdnRewriteException, self).__init__(msg)
        self.msg = msg
        self.url = url

    @property
    def status_code(self):
        """Returns the status code to be used for the error response

        :return: The status code for the error response (500)
        :rtype: int
        """
        return 500

    def status(self):
        """Returns the HTTP status line for the error response

        :return: The HTTP status line for the error response
        :rtype: str
        """
        return str(self.status_code) + ' ' + HTTP_STATUS_CODES.get(self.status_code, 'Unknown Error')

    def __repr__(self):
        return "{0}('{1}',)".format(self.__class__.__name__, self.msg)


# =================================================================
class ConfigException(CdnRewriteException):
    """An Exception used to indicate that the settings could not be loaded"""


# =================================================================
class NotFoundException(CdnRewriteException):
    """An Exception used to indicate that a resource was not found"""

    @property
    def status_code(self):
        """Returns the status code to be used for the error response

        :return: The status code for the error response (404)
        :rtype: int
        """
        return 404
