#
# Test KDC configuration
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
Configuration of a test KDC.

The configuration is a YAML mapping; every key is optional:

.. code-block:: yaml

    realm: EXAMPLE.COM
    master_password: password
    kdc_port: 88
    kadmin_port: 749
    data_dir: /var/lib/kerberos/krb5kdc
    krb5_conf: /etc/krb5.conf
    kdc_log: STDERR
    supported_enctypes:
      - aes256-cts-hmac-sha1-96:normal
    fixtures:
      kadm5.acl: /src/fixtures/kadm5.acl
    principals:
      - name: testuser
        password: password
      - name: testuser_preauth
        password: password
        attributes: [+requires_preauth]

Selected values can be overridden from the environment, see ``ENV_OVERRIDES``.
"""
import os
import re
import logging

import yaml

from . import paths
from .exceptions import ConfigError, InvalidInput
from .principals import Principal, default_principals

log = logging.getLogger(__name__)

ENCTYPE_RE = re.compile(r'^[a-z0-9-]+:[a-z0-9-]+$')

FIXTURE_NAMES = ('kadm5.acl', 'kdc.conf', 'krb5.conf')

ENV_CONFIG = 'TESTKDC_CONFIG'
ENV_OVERRIDES = {
    'TESTKDC_REALM': 'realm',
    'TESTKDC_PORT': 'kdc_port',
    'TESTKDC_MASTER_PASSWORD': 'master_password',
    'TESTKDC_DATA_DIR': 'data_dir',
    'TESTKDC_KRB5_CONF': 'krb5_conf',
}


class KdcConfig(object):
    """ Settings needed to provision a KDC """

    def __init__(self, realm=paths.DEFAULT_REALM,
                 master_password=paths.DEFAULT_MASTER_PASSWORD,
                 kdc_port=paths.DEFAULT_KDC_PORT,
                 kadmin_port=paths.DEFAULT_KADMIN_PORT,
                 data_dir=paths.KDC_DATA_DIR,
                 krb5_conf=paths.KRB5_CONF,
                 kdc_log='STDERR',
                 supported_enctypes=None,
                 principals=None,
                 fixtures=None):
        if not realm or not isinstance(realm, str):
            raise ConfigError("realm must be a non-empty string")
        self.realm = realm.upper()
        self.master_password = str(master_password)
        self.kdc_port = _port(kdc_port, 'kdc_port')
        self.kadmin_port = _port(kadmin_port, 'kadmin_port')
        self.data_dir = str(data_dir).rstrip('/') or '/'
        self.krb5_conf = str(krb5_conf)
        self.kdc_log = kdc_log
        if supported_enctypes is None:
            supported_enctypes = list(paths.DEFAULT_ENCTYPES)
        self.supported_enctypes = _enctypes(supported_enctypes)
        if principals is None:
            principals = default_principals()
        self.principals = list(principals)
        self.fixtures = dict(fixtures or {})
        for name in self.fixtures:
            if name not in FIXTURE_NAMES:
                raise ConfigError("Unknown fixture %r, expected one of %s"
                                  % (name, ', '.join(FIXTURE_NAMES)))

    @property
    def kdc_conf(self):
        return os.path.join(self.data_dir, 'kdc.conf')

    @property
    def acl_file(self):
        return os.path.join(self.data_dir, 'kadm5.acl')

    @property
    def database_name(self):
        return os.path.join(self.data_dir, 'principal')

    @property
    def key_stash_file(self):
        return os.path.join(self.data_dir, '.k5.' + self.realm)

    def principal(self, name):
        for princ in self.principals:
            if princ.name == name:
                return princ
        raise KeyError(name)

    def to_dict(self):
        return {
            'realm': self.realm,
            'master_password': self.master_password,
            'kdc_port': self.kdc_port,
            'kadmin_port': self.kadmin_port,
            'data_dir': self.data_dir,
            'krb5_conf': self.krb5_conf,
            'kdc_log': self.kdc_log,
            'supported_enctypes': list(self.supported_enctypes),
            'fixtures': dict(self.fixtures),
            'principals': [p.to_dict() for p in self.principals],
        }

    def dump(self):
        return yaml.safe_dump(self.to_dict(), default_flow_style=False,
                              sort_keys=False)

    @classmethod
    def from_dict(cls, data):
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a mapping")
        data = dict(data)
        unknown = set(data) - set(cls().to_dict())
        if unknown:
            raise ConfigError("Unknown configuration keys: %s"
                              % ', '.join(sorted(unknown)))
        if 'principals' in data:
            if not isinstance(data['principals'], (list, type(None))):
                raise ConfigError("principals must be a list")
            try:
                data['principals'] = [Principal.from_dict(entry)
                                      for entry in data['principals'] or []]
            except InvalidInput as err:
                raise ConfigError(err.msg)
        return cls(**data)


def _enctypes(value):
    """ supported_enctypes must be a non-empty list of "enctype:salt" """
    if not isinstance(value, (list, tuple)) or not value:
        raise ConfigError("supported_enctypes must be a non-empty list, "
                          "got %r" % (value,))
    for entry in value:
        if not isinstance(entry, str) or not ENCTYPE_RE.match(entry):
            raise ConfigError("Invalid enctype %r, expected enctype:salt"
                              % (entry,))
    return list(value)


def _port(value, name):
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ConfigError("%s must be an integer, got %r" % (name, value))
    if not 0 < port < 65536:
        raise ConfigError("%s out of range: %d" % (name, port))
    return port


def load_config(path=None, environ=None):
    """ Load configuration from YAML and apply environment overrides

        :param str path: YAML file; falls back to $TESTKDC_CONFIG and then
                         to /etc/testkdc.yaml when that exists
        :param dict environ: environment, defaults to os.environ
        :return KdcConfig: configuration
        :Exception: Raises ConfigError
    """
    if environ is None:
        environ = os.environ
    if path is None:
        path = environ.get(ENV_CONFIG)
        if path is None and os.path.exists(paths.TESTKDC_CONF):
            path = paths.TESTKDC_CONF

    data = {}
    if path is not None:
        log.debug("Loading configuration from %s", path)
        try:
            with open(path) as conf_file:
                data = yaml.safe_load(conf_file) or {}
        except IOError as err:
            raise ConfigError("Cannot read %s: %s" % (path, err.strerror))
        except yaml.YAMLError as err:
            raise ConfigError("Cannot parse %s: %s" % (path, err))
        if not isinstance(data, dict):
            raise ConfigError("%s: configuration must be a mapping" % path)

    for env_name, key in ENV_OVERRIDES.items():
        if env_name in environ:
            log.debug("Overriding %s from %s", key, env_name)
            data[key] = environ[env_name]

    return KdcConfig.from_dict(data)
