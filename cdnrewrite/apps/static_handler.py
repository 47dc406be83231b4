import logging
import mimetypes
import os

from cdnrewrite.utils.exceptions import NotFoundException
from cdnrewrite.utils.io import StreamIter


# =================================================================
def is_subpath(parent_path, child_path):
    parent = os.path.abspath(parent_path)
    child = os.path.abspath(child_path)
    return os.path.commonpath([parent, child]) == parent


#=================================================================
# Static Directory App
#=================================================================
class StaticHandler(object):
    """WSGI app serving the files of a local directory, used to
    preview a generated site through the rewrite middleware"""

    def __init__(self, static_path):
        mimetypes.init()

        self.static_path = static_path

    def __call__(self, environ, start_response):
        try:
            return self.serve(environ, start_response)
        except NotFoundException as nfe:
            logging.debug(nfe.msg)
            body = nfe.status().encode('utf-8')
            start_response(nfe.status(), [('Content-Type', 'text/plain; charset=utf-8'),
                                          ('Content-Length', str(len(body)))])
            return [body]

    def get_full_path(self, url):
        url = url.split('?')[0].lstrip('/')

        if not url or url.endswith('/'):
            url += 'index.html'

        full_path = os.path.join(self.static_path, url)

        # Prevent path traversal
        if not is_subpath(self.static_path, full_path):
            raise NotFoundException('Requested a static file outside of static_dir',
                                    url=url)

        if os.path.isdir(full_path):
            full_path = os.path.join(full_path, 'index.html')

        return full_path

    def serve(self, environ, start_response):
        url = environ.get('PATH_INFO', '/')
        full_path = self.get_full_path(url)

        try:
            data = open(full_path, 'rb')
        except IOError:
            raise NotFoundException('Static File Not Found: ' + url, url=url)

        data.seek(0, 2)
        size = data.tell()
        data.seek(0)

        content_type = 'application/octet-stream'

        guessed = mimetypes.guess_type(full_path)
        if guessed[0]:
            content_type = guessed[0]
            if content_type.startswith('text/'):
                content_type += '; charset=utf-8'

        start_response('200 OK', [('Content-Type', content_type),
                                  ('Content-Length', str(size))])

        if environ.get('REQUEST_METHOD') == 'HEAD':
            data.close()
            return []

        return StreamIter(data)
