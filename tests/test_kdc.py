""" Tests for provisioning a KDC through a host """
import signal

import pytest

from testkdc import templates
from testkdc.exceptions import CommandFailed, KadminError, KdcException
from testkdc.kdc import KDC
from testkdc.principals import Principal


def is_kadmin(args):
    return args[0] == 'kadmin.local'


def test_set_up_order(cfg, fake_host):
    kdc = KDC(cfg, fake_host)
    kdc.set_up()

    commands = [args for args, _, _ in fake_host.commands]
    assert commands == [
        ['kdb5_util', 'create', '-W', '-r', 'EXAMPLE.COM', '-s'],
        ['kadmin.local', '-r', 'EXAMPLE.COM', '-q',
         'addprinc -pw "password" "testuser"'],
        ['kadmin.local', '-r', 'EXAMPLE.COM', '-q',
         'addprinc +requires_preauth -pw "password" "testuser_preauth"'],
        ['kadmin.local', '-r', 'EXAMPLE.COM', '-q',
         'addprinc -pw "password" "admin/admin"'],
    ]
    assert fake_host.files == templates.render_all(cfg)


def test_master_password_piped_twice(cfg, fake_host):
    cfg.master_password = 'Secret123'
    KDC(cfg, fake_host).create_database()
    _, stdin, env = fake_host.commands[0]
    assert stdin == "Secret123\nSecret123\n"
    assert env == {'KRB5_CONFIG': cfg.krb5_conf,
                   'KRB5_KDC_PROFILE': cfg.kdc_conf}


def test_database_failure_propagates(cfg, fake_host):
    fake_host.respond(lambda args: args[0] == 'kdb5_util', returncode=1,
                      stderr='kdb5_util: Cannot open DB2 database')
    with pytest.raises(CommandFailed) as err:
        KDC(cfg, fake_host).set_up()
    assert err.value.rval == 1
    assert not any(is_kadmin(args) for args, _, _ in fake_host.commands)


def test_kadmin_error_on_stderr(cfg, fake_host):
    fake_host.respond(
        is_kadmin,
        stdout='Authenticating as principal root/admin@EXAMPLE.COM '
               'with password.\n',
        stderr='add_principal: Principal or policy already exists while '
               'creating "testuser@EXAMPLE.COM".\n')
    with pytest.raises(KadminError):
        KDC(cfg, fake_host).add_principal(Principal('testuser', 'password'))


def test_kadmin_policy_warning_is_not_an_error(cfg, fake_host):
    fake_host.respond(
        is_kadmin,
        stderr='No policy specified for testuser@EXAMPLE.COM; '
               'defaulting to no policy\n')
    KDC(cfg, fake_host).add_principal(Principal('testuser', 'password'))


def test_list_principals_strips_banner(cfg, fake_host):
    fake_host.respond(
        is_kadmin,
        stdout='Authenticating as principal root/admin@EXAMPLE.COM '
               'with password.\n'
               'K/M@EXAMPLE.COM\n'
               'krbtgt/EXAMPLE.COM@EXAMPLE.COM\n'
               'testuser@EXAMPLE.COM\n')
    assert KDC(cfg, fake_host).list_principals() == [
        'K/M@EXAMPLE.COM',
        'krbtgt/EXAMPLE.COM@EXAMPLE.COM',
        'testuser@EXAMPLE.COM',
    ]


def test_get_principal(cfg, fake_host):
    fake_host.respond(
        is_kadmin,
        stdout='Authenticating as principal root/admin@EXAMPLE.COM '
               'with password.\n'
               'Principal: testuser_preauth@EXAMPLE.COM\n'
               'Attributes: REQUIRES_PRE_AUTH\n')
    attrs = KDC(cfg, fake_host).get_principal('testuser_preauth')
    assert attrs['Attributes'] == 'REQUIRES_PRE_AUTH'
    args, _, _ = fake_host.commands[0]
    assert args[-1] == 'getprinc "testuser_preauth"'


def test_delete_and_destroy(cfg, fake_host):
    kdc = KDC(cfg, fake_host)
    kdc.delete_principal('testuser')
    kdc.destroy()
    commands = [args for args, _, _ in fake_host.commands]
    assert commands[0][-1] == 'delprinc -force "testuser"'
    assert commands[1] == ['kdb5_util', 'destroy', '-f', '-r', 'EXAMPLE.COM']


def test_verify_files(cfg, fake_host):
    kdc = KDC(cfg, fake_host)
    assert sorted(kdc.verify_files()) == sorted(templates.render_all(cfg))

    kdc.install_files()
    assert kdc.verify_files() == []

    fake_host.files[cfg.acl_file] = b"*/admin@EXAMPLE.COM *"
    assert kdc.verify_files() == [cfg.acl_file]


def test_run_execs_foreground_kdc(cfg, fake_host):
    KDC(cfg, fake_host).run()
    args, env = fake_host.exec_args
    assert args == ['krb5kdc', '-n']
    assert env['KRB5_KDC_PROFILE'] == cfg.kdc_conf


def test_start_stop(cfg, fake_host):
    kdc = KDC(cfg, fake_host)
    proc = kdc.start_kdc()
    assert proc.args[:2] == ['krb5kdc', '-n']
    assert '-P' in proc.args

    with pytest.raises(KdcException):
        kdc.start_kdc()

    kdc.stop_kdc()
    assert proc.signals == [signal.SIGTERM]
    assert proc.waited
    kdc.stop_kdc()


def test_teardown_removes_basedir(cfg, fake_host):
    kdc = KDC(cfg, fake_host, basedir=cfg.data_dir)
    kdc.install_files()
    kdc.start_kdc()
    kdc.teardown()
    assert ['rm', '-rf', cfg.data_dir] in \
        [args for args, _, _ in fake_host.commands]
    assert cfg.acl_file not in fake_host.files
