import logging

from gevent import spawn
from gevent.pywsgi import WSGIServer


# ============================================================================
class GeventServer(object):
    """Serves a WSGI application with gevent, either blocking in the
    current greenlet or in a spawned one"""

    def __init__(self, app, port=0, hostname='localhost', direct=False):
        """
        :param app: The WSGI application to serve
        :param int port: The port to listen on, 0 for any free port
        :param str hostname: The address to bind to
        :param bool direct: serve in the current greenlet, blocking until stopped
        """
        self.server = WSGIServer((hostname, port), app)
        self.server.init_socket()

        self.port = self.server.address[1]
        self.ge = None

        if direct:
            self._run()
        else:
            self.ge = spawn(self._run)

    def _run(self):
        logging.info('Serving on {0}:{1}'.format(self.server.address[0], self.port))
        try:
            self.server.serve_forever()
        except Exception:
            logging.exception('Server on port {0} failed'.format(self.port))

    def stop(self):
        logging.debug('Stopping server on {0}'.format(self.port))
        self.server.stop()

    def join(self):
        if self.ge:
            self.ge.join()
