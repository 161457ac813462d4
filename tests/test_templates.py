""" Tests for the generated KDC files """
import pytest

from testkdc import templates
from testkdc.config import KdcConfig
from testkdc.exceptions import ConfigError


def test_acl():
    assert templates.format_acl(KdcConfig()) == "*/admin@EXAMPLE.COM *\n"


def test_kdc_conf_defaults():
    kdc_conf = templates.format_kdc_conf(KdcConfig())
    assert kdc_conf.startswith("[kdcdefaults]\n")
    assert "    kdc_ports = 88\n" in kdc_conf
    assert "    kdc_tcp_ports = 88\n" in kdc_conf
    assert "    EXAMPLE.COM = {\n" in kdc_conf
    assert "acl_file = /var/lib/kerberos/krb5kdc/kadm5.acl\n" in kdc_conf
    assert "supported_enctypes = aes256-cts-hmac-sha1-96:normal\n" \
        in kdc_conf
    assert "master_key_type = aes256-cts-hmac-sha1-96\n" in kdc_conf
    assert "kdc = STDERR\n" in kdc_conf


def test_krb5_conf_defaults():
    krb5_conf = templates.format_krb5_conf(KdcConfig())
    assert krb5_conf.startswith("[libdefaults]\n")
    assert "    default_realm = EXAMPLE.COM\n" in krb5_conf
    assert "        kdc = localhost:88\n" in krb5_conf
    assert "    .example.com = EXAMPLE.COM\n" in krb5_conf
    assert "permitted_enctypes = aes256-cts-hmac-sha1-96\n" in krb5_conf


def test_custom_realm_and_port():
    cfg = KdcConfig(realm='KCMTEST', kdc_port=10088, kadmin_port=10749)
    assert "kdc = localhost:10088" in templates.format_krb5_conf(cfg)
    assert "admin_server = localhost:10749" in \
        templates.format_krb5_conf(cfg)
    assert "kdc_ports = 10088" in templates.format_kdc_conf(cfg)
    assert templates.format_acl(cfg) == "*/admin@KCMTEST *\n"


def test_output_is_deterministic():
    assert templates.render_all(KdcConfig()) == \
        templates.render_all(KdcConfig())


def test_render_all_destinations(cfg):
    rendered = templates.render_all(cfg)
    assert sorted(rendered) == sorted([cfg.acl_file, cfg.kdc_conf,
                                       cfg.krb5_conf])
    assert rendered[cfg.acl_file] == b"*/admin@EXAMPLE.COM *\n"


def test_fixture_used_verbatim(tmp_path):
    fixture = tmp_path / 'kadm5.acl'
    fixture.write_bytes(b"admin/admin@EXAMPLE.COM *\n# no trailing rules")
    cfg = KdcConfig(fixtures={'kadm5.acl': str(fixture)})
    assert templates.render(cfg, 'kadm5.acl') == \
        b"admin/admin@EXAMPLE.COM *\n# no trailing rules"


def test_missing_fixture(tmp_path):
    cfg = KdcConfig(fixtures={'kdc.conf': str(tmp_path / 'kdc.conf')})
    with pytest.raises(ConfigError):
        templates.render_all(cfg)


def test_kdc_conf_complete():
    assert templates.format_kdc_conf(KdcConfig(data_dir='/srv/kdc')) == (
        "[kdcdefaults]\n"
        "    kdc_ports = 88\n"
        "    kdc_tcp_ports = 88\n"
        "\n"
        "[realms]\n"
        "    EXAMPLE.COM = {\n"
        "        database_name = /srv/kdc/principal\n"
        "        acl_file = /srv/kdc/kadm5.acl\n"
        "        key_stash_file = /srv/kdc/.k5.EXAMPLE.COM\n"
        "        kadmind_port = 749\n"
        "        max_life = 10h 0m 0s\n"
        "        max_renewable_life = 7d 0h 0m 0s\n"
        "        master_key_type = aes256-cts-hmac-sha1-96\n"
        "        supported_enctypes = aes256-cts-hmac-sha1-96:normal\n"
        "    }\n"
        "\n"
        "[logging]\n"
        "    kdc = STDERR\n"
        "    admin_server = STDERR\n"
        "    default = STDERR\n")


def test_krb5_conf_complete():
    cfg = KdcConfig(supported_enctypes=['aes256-cts-hmac-sha1-96:normal',
                                        'aes128-cts-hmac-sha1-96:normal'])
    enctypes = 'aes256-cts-hmac-sha1-96 aes128-cts-hmac-sha1-96'
    assert templates.format_krb5_conf(cfg) == (
        "[libdefaults]\n"
        "    default_realm = EXAMPLE.COM\n"
        "    dns_lookup_realm = false\n"
        "    dns_lookup_kdc = false\n"
        "    rdns = false\n"
        "    ticket_lifetime = 10h\n"
        "    forwardable = true\n"
        "    default_tkt_enctypes = %(e)s\n"
        "    default_tgs_enctypes = %(e)s\n"
        "    permitted_enctypes = %(e)s\n"
        "\n"
        "[realms]\n"
        "    EXAMPLE.COM = {\n"
        "        kdc = localhost:88\n"
        "        admin_server = localhost:749\n"
        "    }\n"
        "\n"
        "[domain_realm]\n"
        "    .example.com = EXAMPLE.COM\n"
        "    example.com = EXAMPLE.COM\n") % {'e': enctypes}
