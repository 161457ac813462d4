#
# Smoke checks against a provisioned, running KDC
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
import logging

from .exceptions import SmokeCheckFailed
from .krb5utils import Krb5Utils
from .probe import is_listening

log = logging.getLogger(__name__)


class CheckResult(object):
    """ Outcome of one smoke check """

    def __init__(self, name, passed, detail=''):
        self.name = name
        self.passed = passed
        self.detail = detail

    def __str__(self):
        status = 'PASS' if self.passed else 'FAIL'
        if self.detail:
            return '%s %s: %s' % (status, self.name, self.detail)
        return '%s %s' % (status, self.name)


def check_ports(kdc):
    port = kdc.cfg.kdc_port
    results = []
    for proto in ('tcp', 'udp'):
        passed = is_listening(kdc.host, port, proto)
        results.append(CheckResult('listen %d/%s' % (port, proto), passed))
    return results


def check_password_login(utils, kdc, name):
    """ kinit with the configured password succeeds """
    principal = kdc.cfg.principal(name)
    (retval, _, err) = utils.kinit(principal.qualify(kdc.realm),
                                   principal.password)
    return CheckResult('kinit %s' % name, retval == 0, err.strip())


def check_preauth_login(utils, kdc, name):
    """ kinit succeeds only after the KDC demanded preauthentication """
    principal = kdc.cfg.principal(name)
    result = utils.kinit_trace(principal.qualify(kdc.realm),
                               principal.password)
    check = 'kinit %s' % name
    if not result.succeeded:
        return CheckResult(check, False, 'kinit failed')
    if not result.preauth_required:
        return CheckResult(check, False,
                           'KDC did not require preauthentication')
    return CheckResult(check, True, 'preauthentication required')


def check_files(kdc):
    mismatched = kdc.verify_files()
    return CheckResult('config files', not mismatched, ', '.join(mismatched))


def run_checks(kdc, utils=None):
    """ Run all smoke checks against a KDC

        Principals with a password are tried with kinit, those with
        +requires_preauth must also see the KDC ask for preauthentication.

        :param KDC kdc: provisioned and running KDC
        :param Krb5Utils utils: client tools, defaults to ones using the
                                KDC's krb5.conf and a memory ccache
        :return list: CheckResult of every check
    """
    if utils is None:
        utils = Krb5Utils(kdc.cfg.krb5_conf, host=kdc.host,
                          ccache='MEMORY:testkdc')

    results = check_ports(kdc)
    for principal in kdc.cfg.principals:
        if principal.password is None:
            continue
        if principal.requires_preauth:
            results.append(check_preauth_login(utils, kdc, principal.name))
        else:
            results.append(check_password_login(utils, kdc, principal.name))
    results.append(check_files(kdc))

    for result in results:
        log.info("%s", result)
    return results


def assert_all(results):
    failed = [r for r in results if not r.passed]
    if failed:
        raise SmokeCheckFailed("Failed checks: %s"
                               % '; '.join(str(r) for r in failed))
