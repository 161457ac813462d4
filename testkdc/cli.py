import os
import sys
import logging
import argparse

from testkdc import smoke
from testkdc import templates
from testkdc.config import load_config
from testkdc.exceptions import StandardException
from testkdc.host import LocalHost, SSHHost
from testkdc.kdc import KDC
from testkdc.log import get_logger

log = logging.getLogger('testkdc')


class KdcCli:
    """
    Command line front end: provision, run and check a test KDC
    """
    def add_subcommand(self, subparsers, name, help_msg, func):
        """
        Add subcommand to the subcommand group

        Args:
            name(str): Subcommand name
            help_msg(str): Help message for subcommand
            func(function): Function to call on execution

        Returns:
            parser (ArgumentParser): Subcommand parser
        """
        parser = subparsers.add_parser(name, help=help_msg)
        parser.set_defaults(func=func)
        return parser

    def setup_args(self):
        """
        Top-level argument setup function.

        Returns:
            parser (ArgumentParser): Base parser object
        """
        formatter = argparse.RawTextHelpFormatter
        parser = argparse.ArgumentParser(description='Provision and run an '
                                         'MIT Kerberos KDC for testing',
                                         formatter_class=formatter)
        parser.add_argument('--config', default=None,
                            help='YAML configuration file '
                                 '(default: $TESTKDC_CONFIG or '
                                 '/etc/testkdc.yaml)')
        parser.add_argument('--host', default=None,
                            help='Provision a remote host over SSH '
                                 'instead of the local machine')
        parser.add_argument('--ssh-user', default='root')
        parser.add_argument('--ssh-password', default=None)
        parser.add_argument('--debug', action='store_true',
                            help='Enable debug logging')

        subparsers = parser.add_subparsers(title=None, metavar='COMMANDS')
        self.add_subcommand(subparsers, 'bootstrap',
                            'Install configuration, create the realm '
                            'and its principals', self.bootstrap)
        self.add_subcommand(subparsers, 'run',
                            'Run krb5kdc in the foreground', self.run)
        self.add_subcommand(subparsers, 'check',
                            'Run smoke checks against the running KDC',
                            self.check)
        render = self.add_subcommand(subparsers, 'render',
                                     'Write kadm5.acl, kdc.conf and '
                                     'krb5.conf to a directory', self.render)
        render.add_argument('--output-dir', required=True)
        self.add_subcommand(subparsers, 'show-config',
                            'Print the effective configuration',
                            self.show_config)

        return parser

    def _kdc(self, args):
        cfg = load_config(args.config)
        if args.host:
            host = SSHHost(args.host, username=args.ssh_user,
                           password=args.ssh_password)
        else:
            host = LocalHost()
        return KDC(cfg, host)

    def bootstrap(self, args):
        self._kdc(args).set_up()
        return 0

    def run(self, args):
        self._kdc(args).run()
        return 0

    def check(self, args):
        results = smoke.run_checks(self._kdc(args))
        for result in results:
            print(result)
        smoke.assert_all(results)
        return 0

    def render(self, args):
        cfg = load_config(args.config)
        os.makedirs(args.output_dir, exist_ok=True)
        for name in templates.FORMATTERS:
            path = os.path.join(args.output_dir, name)
            log.info("Writing %s", path)
            with open(path, 'wb') as outfile:
                outfile.write(templates.render(cfg, name))
        return 0

    def show_config(self, args):
        sys.stdout.write(load_config(args.config).dump())
        return 0

    def main(self, argv=None):
        parser = self.setup_args()
        args = parser.parse_args(argv)

        get_logger('testkdc', logging.DEBUG if args.debug else logging.INFO)

        if not hasattr(args, 'func'):
            parser.print_help()
            return 0

        try:
            return args.func(args)
        except StandardException as err:
            log.error("%s", err)
            return 1


def run():
    cli = KdcCli()
    sys.exit(cli.main())
