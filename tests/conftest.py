""" Shared fixtures for testkdc tests """
import pytest

from testkdc.config import KdcConfig
from testkdc.exceptions import CommandFailed
from testkdc.host import CommandResult

pytest_plugins = ["testkdc.pytest_plugin"]


class FakeHost(object):
    """ Host recording commands and keeping files in memory

        Attributes:
            commands(list): (args, stdin, env) of every command run
            files(dict): path to bytes
            responses(list): (predicate, CommandResult) pairs; the first
                predicate accepting the args decides the result
    """

    hostname = 'fakehost'

    def __init__(self):
        self.commands = []
        self.files = {}
        self.responses = []
        self.spawned = []
        self.exec_args = None

    def respond(self, predicate, returncode=0, stdout='', stderr=''):
        self.responses.append((predicate, (returncode, stdout, stderr)))

    def run_command(self, args, stdin=None, env=None, raiseonerr=True):
        self.commands.append((list(args), stdin, env))
        returncode, out, err = 0, '', ''
        for predicate, response in self.responses:
            if predicate(args):
                returncode, out, err = response
                break
        result = CommandResult(args, returncode, out, err)
        if raiseonerr and returncode != 0:
            raise CommandFailed(args, returncode, err)
        return result

    def spawn(self, args, env=None):
        proc = FakeProcess(args)
        self.spawned.append(proc)
        return proc

    def exec_command(self, args, env=None):
        self.exec_args = (list(args), env)

    def put_file_contents(self, path, contents, mode=None):
        if isinstance(contents, str):
            contents = contents.encode('utf-8')
        self.files[path] = contents

    def get_file_contents(self, path):
        try:
            return self.files[path]
        except KeyError:
            raise IOError(2, 'No such file or directory', path)

    def file_exists(self, path):
        return path in self.files

    def remove_tree(self, path):
        self.commands.append((['rm', '-rf', path], None, None))
        for name in list(self.files):
            if name.startswith(path):
                del self.files[name]


class FakeProcess(object):
    def __init__(self, args):
        self.args = args
        self.signals = []
        self.waited = False

    def send_signal(self, sig):
        self.signals.append(sig)

    def wait(self):
        self.waited = True
        return 0


@pytest.fixture
def fake_host():
    return FakeHost()


@pytest.fixture
def cfg(tmp_path):
    return KdcConfig(data_dir=str(tmp_path / 'krb5kdc'),
                     krb5_conf=str(tmp_path / 'krb5.conf'))
