#
# pytest fixtures providing a throwaway KDC
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
"""
The KDC lives in a scratch directory and listens on a non-privileged port
so tests can run without root. Tests are skipped when the MIT Kerberos
server tools are not installed.
"""
import shutil

import pytest

from .config import KdcConfig
from .kdc import KDC
from .krb5utils import Krb5Utils
from .probe import wait_for_port

REQUIRED_TOOLS = ('krb5kdc', 'kdb5_util', 'kadmin.local', 'kinit')


def pytest_addoption(parser):
    """ Add test KDC options to the pytest command line """
    group = parser.getgroup('testkdc')
    group.addoption('--kdc-realm', action='store', default='EXAMPLE.COM',
                    help='Realm of the test KDC (default: %(default)s)')
    group.addoption('--kdc-port', action='store', type=int, default=10088,
                    help='Port of the test KDC (default: %(default)s)')


def missing_tools():
    return [tool for tool in REQUIRED_TOOLS if shutil.which(tool) is None]


@pytest.fixture(scope='module')
def kdc_config(request, tmp_path_factory):
    """ KDC configuration rooted in a scratch directory """
    basedir = tmp_path_factory.mktemp('krb5kdc')
    port = request.config.getoption('kdc_port')
    return KdcConfig(realm=request.config.getoption('kdc_realm'),
                     kdc_port=port,
                     kadmin_port=port + 661,
                     data_dir=str(basedir),
                     krb5_conf=str(basedir / 'krb5.conf'),
                     kdc_log='FILE:%s' % (basedir / 'krb5kdc.log'))


@pytest.fixture(scope='module')
def kdc_instance(request, kdc_config):
    """ Kerberos server instance fixture """
    missing = missing_tools()
    if missing:
        pytest.skip('MIT Kerberos tools not installed: %s'
                    % ', '.join(missing))

    instance = KDC(kdc_config, basedir=kdc_config.data_dir)
    try:
        instance.set_up()
        instance.start_kdc()
        if not wait_for_port('127.0.0.1', kdc_config.kdc_port):
            pytest.fail('KDC did not start listening')
    except Exception:
        instance.teardown()
        raise
    request.addfinalizer(instance.teardown)
    return instance


@pytest.fixture
def krb5utils(kdc_instance):
    return Krb5Utils(kdc_instance.cfg.krb5_conf, host=kdc_instance.host,
                     ccache='MEMORY:testkdc')
