#
# Kerberos client utilities
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
from .host import LocalHost

PREAUTH_REQUIRED = 'Additional pre-authentication required'


class KinitResult(object):
    def __init__(self, returncode, stdout_text, stderr_text):
        self.returncode = returncode
        self.stdout_text = stdout_text
        self.stderr_text = stderr_text

    @property
    def succeeded(self):
        return self.returncode == 0

    @property
    def preauth_required(self):
        """ The KDC answered the first AS-REQ with PREAUTH_REQUIRED """
        return PREAUTH_REQUIRED in self.stderr_text


class Krb5Utils(object):
    """
    Helper class to drive Kerberos command line utilities against the KDC
    """
    def __init__(self, krb5_conf_path, host=None, ccache=None):
        self.krb5_conf_path = krb5_conf_path
        self.host = host or LocalHost()
        self.ccache = ccache

    def _env(self, extra_env=None):
        my_env = {'KRB5_CONFIG': self.krb5_conf_path}
        if self.ccache is not None:
            my_env['KRB5CCNAME'] = self.ccache
        if extra_env is not None:
            my_env.update(extra_env)
        return my_env

    def _run_in_env(self, args, stdin=None, extra_env=None):
        result = self.host.run_command(args, stdin=stdin,
                                       env=self._env(extra_env),
                                       raiseonerr=False)
        return result.returncode, result.stdout_text, result.stderr_text

    def kinit(self, principal, password, options=None, env=None):
        args = ["kinit"]
        if options:
            args.extend(options)
        args.append(principal)
        return self._run_in_env(args, password + "\n", env)

    def kinit_trace(self, principal, password, options=None):
        """ kinit with library tracing sent to stderr

            :return KinitResult: outcome and whether preauth was demanded
        """
        trace_env = {'KRB5_TRACE': '/dev/stderr'}
        retval, out, err = self.kinit(principal, password, options, trace_env)
        return KinitResult(retval, out, err)

    def kdestroy(self, all_ccaches=False, env=None):
        args = ["kdestroy"]
        if all_ccaches is True:
            args += ["-A"]
        retval, _, _ = self._run_in_env(args, extra_env=env)
        return retval

    def default_principal(self, env=None):
        """ Principal of the default ccache, None when there is none """
        retval, out, _ = self._run_in_env(["klist"], extra_env=env)
        if retval != 0:
            return None
        for line in out.splitlines():
            if line.startswith("Default principal:"):
                return line.split(":", 1)[1].strip()
        return None
