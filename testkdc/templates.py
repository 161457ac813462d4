#
# KDC configuration file templates
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
Contents of the three files a KDC needs: kadm5.acl, kdc.conf and krb5.conf.

Output is deterministic so an installed file can be compared byte for byte
with what was written at provisioning time.
"""
import logging
import textwrap

from .exceptions import ConfigError

log = logging.getLogger(__name__)

KDC_CONF = textwrap.dedent("""\
    [kdcdefaults]
        kdc_ports = %(kdc_port)s
        kdc_tcp_ports = %(kdc_port)s

    [realms]
        %(realm)s = {
            database_name = %(database_name)s
            acl_file = %(acl_file)s
            key_stash_file = %(key_stash_file)s
            kadmind_port = %(kadmin_port)s
            max_life = 10h 0m 0s
            max_renewable_life = 7d 0h 0m 0s
            master_key_type = %(master_key_type)s
            supported_enctypes = %(enctypes)s
        }

    [logging]
        kdc = %(kdc_log)s
        admin_server = %(kdc_log)s
        default = %(kdc_log)s
    """)

KRB5_CONF = textwrap.dedent("""\
    [libdefaults]
        default_realm = %(realm)s
        dns_lookup_realm = false
        dns_lookup_kdc = false
        rdns = false
        ticket_lifetime = 10h
        forwardable = true
        default_tkt_enctypes = %(enctypes)s
        default_tgs_enctypes = %(enctypes)s
        permitted_enctypes = %(enctypes)s

    [realms]
        %(realm)s = {
            kdc = localhost:%(kdc_port)s
            admin_server = localhost:%(kadmin_port)s
        }

    [domain_realm]
        .%(domain)s = %(realm)s
        %(domain)s = %(realm)s
    """)


def format_acl(cfg):
    """ Grant every */admin principal of the realm full privileges """
    return '*/admin@%s *\n' % cfg.realm


def format_kdc_conf(cfg):
    return KDC_CONF % {
        'realm': cfg.realm,
        'kdc_port': cfg.kdc_port,
        'kadmin_port': cfg.kadmin_port,
        'database_name': cfg.database_name,
        'acl_file': cfg.acl_file,
        'key_stash_file': cfg.key_stash_file,
        'master_key_type': cfg.supported_enctypes[0].split(':')[0],
        'enctypes': ' '.join(cfg.supported_enctypes),
        'kdc_log': cfg.kdc_log,
    }


def format_krb5_conf(cfg):
    # krb5.conf enctype lists take no salt
    enctypes = [e.split(':')[0] for e in cfg.supported_enctypes]
    return KRB5_CONF % {
        'realm': cfg.realm,
        'domain': cfg.realm.lower(),
        'kdc_port': cfg.kdc_port,
        'kadmin_port': cfg.kadmin_port,
        'enctypes': ' '.join(enctypes),
    }


FORMATTERS = {
    'kadm5.acl': format_acl,
    'kdc.conf': format_kdc_conf,
    'krb5.conf': format_krb5_conf,
}


def destination(cfg, name):
    return {
        'kadm5.acl': cfg.acl_file,
        'kdc.conf': cfg.kdc_conf,
        'krb5.conf': cfg.krb5_conf,
    }[name]


def render(cfg, name):
    """ Contents of one file as bytes

        A fixture configured for the file is returned verbatim instead of
        the generated contents.

        :param KdcConfig cfg: KDC configuration
        :param str name: one of kadm5.acl, kdc.conf or krb5.conf
        :Exception: Raises ConfigError when the fixture cannot be read
    """
    source = cfg.fixtures.get(name)
    if source is None:
        return FORMATTERS[name](cfg).encode('utf-8')

    log.debug("Using fixture %s for %s", source, name)
    try:
        with open(source, 'rb') as fixture:
            return fixture.read()
    except IOError as err:
        raise ConfigError("Cannot read fixture %s: %s"
                          % (source, err.strerror))


def render_all(cfg):
    """ Map destination path to file contents for all three files """
    return dict((destination(cfg, name), render(cfg, name))
                for name in FORMATTERS)
