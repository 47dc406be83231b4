from gevent.monkey import patch_all; patch_all()
from argparse import ArgumentParser

import json
import logging
import sys

from cdnrewrite import DEFAULT_CONFIG
from cdnrewrite.rewrite.rewriteconfig import RewriteConfig, load_settings
from cdnrewrite.rewrite.hooks import RewriteHooks
from cdnrewrite.rewrite.regex_rewriters import ContentRewriter
from cdnrewrite.rewrite.json_rewriter import JSONPayloadRewriter
from cdnrewrite.rewrite.dispatch import get_site_hostnames
from cdnrewrite.utils.exceptions import CdnRewriteException


#=============================================================================
def rewrite_files(args=None):
    """Utility function for rewriting files or stdin to use the CDN hostname"""
    return RewriteCli(args=args,
                      desc='Rewrite asset urls in files to a CDN hostname').run()


#=============================================================================
def rewrite_server(args=None):
    """Utility function for serving a directory through the rewrite middleware"""
    return ServerCli(args=args,
                     default_port=8090,
                     desc='Preview a static site with asset urls rewritten to a CDN hostname').run()


#=============================================================================
class BaseCli(object):
    """Base CLI class that provides the initial arg parser setup
    and loads the settings, with command line overrides"""

    def __init__(self, args=None, desc=''):
        """
        :param args: CLI arguments
        :param str desc: The description for the command
        """
        parser = ArgumentParser(description=desc)
        parser.add_argument('-c', '--config',
                            help='Config file (default {0}, or $CDN_REWRITE_CONFIG)'.format(DEFAULT_CONFIG))
        parser.add_argument('--cdn-hostname',
                            help='CDN hostname to rewrite urls to')
        parser.add_argument('--site-url',
                            help='Site url, whose hostname is rewritten')
        parser.add_argument('--extensions',
                            help='Comma-separated file extensions to rewrite')
        parser.add_argument('--exclude', action='append',
                            help='Leave urls containing this string untouched (repeatable)')
        parser.add_argument('--no-relative', action='store_true',
                            help='Do not rewrite host-relative urls')
        parser.add_argument('--debug', action='store_true',
                            help='Enable debug logging')

        self.desc = desc
        self.extra_config = {}

        self._extend_parser(parser)

        self.r = parser.parse_args(args)

        logging.basicConfig(format='%(asctime)s: [%(levelname)s]: %(message)s',
                            level=logging.DEBUG if self.r.debug else logging.INFO)

        if self.r.cdn_hostname:
            self.extra_config['cdn_hostname'] = self.r.cdn_hostname

        if self.r.site_url:
            self.extra_config['site_url'] = self.r.site_url

        if self.r.extensions:
            self.extra_config['included_file_extensions'] = self.r.extensions.split(',')

        if self.r.exclude:
            self.extra_config['excluded_strings'] = self.r.exclude

        if self.r.no_relative:
            self.extra_config['rewrite_relative_urls'] = False

    def _extend_parser(self, parser):  #pragma: no cover
        """Method provided for subclasses to add their cli argument on top of the default cli arguments.

        :param ArgumentParser parser: The argument parser instance passed by BaseCli
        """
        pass

    def load_config(self):
        return load_settings(self.r.config or DEFAULT_CONFIG, self.extra_config)

    def run(self):
        raise NotImplementedError()


#=============================================================================
class RewriteCli(BaseCli):
    """CLI rewriting files, or stdin, to stdout or an output file"""

    def _extend_parser(self, parser):
        parser.add_argument('files', nargs='*',
                            help='Files to rewrite, stdin if none or -')
        parser.add_argument('-o', '--output',
                            help='Write output to this file instead of stdout')
        parser.add_argument('--site-hostname', action='append', default=[],
                            help='Additional site hostname to rewrite (repeatable)')
        parser.add_argument('--json', action='store_true',
                            help='Rewrite input as JSON data')

    def run(self):
        try:
            config = self.load_config()
            hooks = RewriteHooks.from_config(config)
        except CdnRewriteException as e:
            logging.error(e.msg)
            return 1

        rewrite_config = RewriteConfig.from_settings(config)
        if not rewrite_config.is_complete:
            logging.warning('No cdn_hostname or included_file_extensions set, output unchanged')

        content_rewriter = ContentRewriter(rewrite_config, hooks)

        site_hostnames = get_site_hostnames(None, config.get('site_url'), hooks)
        for hostname in self.r.site_hostname:
            if hostname not in site_hostnames:
                site_hostnames.append(hostname)

        def rewrite_text(text):
            return content_rewriter.rewrite(text, site_hostnames)

        out = open(self.r.output, 'wb') if self.r.output else sys.stdout.buffer

        try:
            for filename in (self.r.files or ['-']):
                try:
                    buff = self.read_input(filename)
                except IOError as e:
                    logging.error('Unable to read {0}: {1}'.format(filename, e))
                    return 1

                try:
                    out.write(self.rewrite_buff(buff, rewrite_text))
                except ValueError as e:
                    logging.error('Invalid JSON in {0}: {1}'.format(filename, e))
                    return 1

        finally:
            if self.r.output:
                out.close()
            else:
                out.flush()

        return 0

    @staticmethod
    def read_input(filename):
        if filename == '-':
            return sys.stdin.buffer.read()

        with open(filename, 'rb') as fh:
            return fh.read()

    def rewrite_buff(self, buff, rewrite_text):
        charset = 'utf-8'
        try:
            text = buff.decode(charset)
        except UnicodeDecodeError:
            charset = 'iso-8859-1'
            text = buff.decode(charset)

        if self.r.json:
            data = json.loads(text)
            result = JSONPayloadRewriter(rewrite_text).rewrite(data)
            if result is data:
                return buff

            return json.dumps(result, ensure_ascii=False).encode(charset)

        rewritten = rewrite_text(text)
        if rewritten == text:
            return buff

        return rewritten.encode(charset)


#=============================================================================
class ServerCli(BaseCli):
    """CLI serving a local directory through the rewrite middleware"""

    def __init__(self, args=None, default_port=8090, desc=''):
        self.default_port = default_port
        super(ServerCli, self).__init__(args=args, desc=desc)

    def _extend_parser(self, parser):
        parser.add_argument('directory',
                            help='Directory to serve')
        parser.add_argument('-p', '--port', type=int, default=self.default_port,
                            help='Port to listen on (default %s)' % self.default_port)
        parser.add_argument('-b', '--bind', default='0.0.0.0',
                            help='Address to listen on (default 0.0.0.0)')

    def load(self):
        from cdnrewrite.apps.middleware import CdnRewriteMiddleware
        from cdnrewrite.apps.static_handler import StaticHandler

        return CdnRewriteMiddleware(StaticHandler(self.r.directory),
                                    config=self.load_config())

    def run(self):
        try:
            self.application = self.load()
        except CdnRewriteException as e:
            logging.error(e.msg)
            return 1

        self.run_gevent()
        return 0

    def run_gevent(self):
        from cdnrewrite.utils.geventserver import GeventServer
        logging.info('Starting Gevent Server on ' + str(self.r.port))
        GeventServer(self.application,
                     port=self.r.port,
                     hostname=self.r.bind,
                     direct=True)


#=============================================================================
if __name__ == "__main__":
    sys.exit(rewrite_files())
