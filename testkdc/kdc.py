#
# MIT Kerberos server class
#
# Copyright (c) 2024 testkdc contributors.
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.
#
import os
import re
import signal
import logging

from . import templates
from .exceptions import KadminError, KdcException
from .host import LocalHost
from .principals import parse_getprinc

log = logging.getLogger(__name__)

# com_err style message, e.g.
# add_principal: Principal or policy already exists while creating "x@R".
KADMIN_ERROR_RE = re.compile(r'^[\w.]+: .+ while .+$')


class KDC(object):
    """
    MIT Kerberos KDC instance

    All commands and file operations go through ``host`` so the same
    object provisions the local container or a remote test machine.
    """

    def __init__(self, cfg, host=None, basedir=None):
        """
        :param KdcConfig cfg: KDC configuration
        :param host: LocalHost or SSHHost, defaults to LocalHost
        :param str basedir: scratch directory owned by this KDC, removed
                            on teardown
        """
        self.cfg = cfg
        self.host = host or LocalHost()
        self.basedir = basedir
        self.realm = cfg.realm
        self.kdc_pid_file = os.path.join(cfg.data_dir, 'krb5kdc.pid')
        self._kdc_proc = None

    def get_krb5_env(self):
        return {
            'KRB5_CONFIG': self.cfg.krb5_conf,
            'KRB5_KDC_PROFILE': self.cfg.kdc_conf,
        }

    def install_files(self):
        """ Write kadm5.acl, kdc.conf and krb5.conf """
        for path, contents in templates.render_all(self.cfg).items():
            log.info("Installing %s", path)
            self.host.put_file_contents(path, contents)

    def verify_files(self):
        """ Compare installed files with the provisioned contents

            :return list: paths that are missing or differ
        """
        mismatched = []
        for path, expected in templates.render_all(self.cfg).items():
            try:
                actual = self.host.get_file_contents(path)
            except IOError:
                log.warning("%s is missing", path)
                mismatched.append(path)
                continue
            if actual != expected:
                log.warning("%s differs from the provisioned file", path)
                mismatched.append(path)
        return mismatched

    def create_database(self):
        """ Create the principal database and stash the master key """
        log.info("Creating Kerberos database for realm %s", self.realm)
        # kdb5_util prompts twice for the master key
        password = self.cfg.master_password + "\n"
        self.host.run_command(
            ['kdb5_util', 'create', '-W', '-r', self.realm, '-s'],
            stdin=password * 2,
            env=self.get_krb5_env())

    def destroy(self):
        """ Remove the principal database """
        log.info("Destroying Kerberos database for realm %s", self.realm)
        self.host.run_command(
            ['kdb5_util', 'destroy', '-f', '-r', self.realm],
            env=self.get_krb5_env())

    def kadmin(self, query):
        """ Run a kadmin.local query

            kadmin.local exits with zero for most failed queries, errors are
            detected on stderr.

            :param str query: kadmin query
            :return CommandResult: result without the "Authenticating as"
                                   banner
            :Exception: Raises KadminError
        """
        result = self.host.run_command(
            ['kadmin.local', '-r', self.realm, '-q', query],
            env=self.get_krb5_env())
        errors = [line for line in result.stderr_lines
                  if KADMIN_ERROR_RE.match(line)]
        if errors:
            raise KadminError("kadmin query '%s' failed: %s"
                              % (query, '; '.join(errors)))

        result.stdout_text = '\n'.join(
            line for line in result.stdout_lines
            if not line.startswith('Authenticating as principal'))
        return result

    def add_principal(self, principal):
        log.info("Adding principal %s", principal.qualify(self.realm))
        self.kadmin(principal.addprinc_query())

    def delete_principal(self, name):
        log.info("Deleting principal %s", name)
        self.kadmin('delprinc -force "%s"' % name)

    def get_principal(self, name):
        result = self.kadmin('getprinc "%s"' % name)
        return parse_getprinc(result.stdout_text)

    def list_principals(self):
        result = self.kadmin('listprincs')
        return [line for line in result.stdout_lines if line]

    def set_up(self):
        self.install_files()
        self.create_database()
        for principal in self.cfg.principals:
            self.add_principal(principal)
        log.info("Realm %s is ready", self.realm)

    def run(self):
        """ Replace the current process with krb5kdc in the foreground """
        self.host.exec_command(['krb5kdc', '-n'], env=self.get_krb5_env())

    def start_kdc(self, extra_args=None):
        """ Start krb5kdc in the background """
        if self._kdc_proc is not None:
            raise KdcException("KDC for %s is already running" % self.realm)
        args = ['krb5kdc', '-n', '-P', self.kdc_pid_file]
        if extra_args:
            args += extra_args
        log.info("Starting KDC for realm %s on port %d",
                 self.realm, self.cfg.kdc_port)
        self._kdc_proc = self.host.spawn(args, env=self.get_krb5_env())
        return self._kdc_proc

    def stop_kdc(self):
        if self._kdc_proc is None:
            return
        log.info("Stopping KDC for realm %s", self.realm)
        self._kdc_proc.send_signal(signal.SIGTERM)
        self._kdc_proc.wait()
        self._kdc_proc = None

    def teardown(self):
        self.stop_kdc()
        if self.basedir is not None:
            self.host.remove_tree(self.basedir)
