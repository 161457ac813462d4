#
# Hosts the KDC is provisioned on
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
import shlex
import socket
import time
import logging
import posixpath
import subprocess

import paramiko

from .exceptions import CommandFailed, KdcException

log = logging.getLogger(__name__)

RECV_SIZE = 32768
POLL_INTERVAL = 0.01


class CommandResult(object):
    """ Outcome of a command run on a host """

    def __init__(self, args, returncode, stdout_text='', stderr_text=''):
        self.args = list(args)
        self.returncode = returncode
        self.stdout_text = stdout_text
        self.stderr_text = stderr_text

    @property
    def stdout_lines(self):
        return self.stdout_text.splitlines()

    @property
    def stderr_lines(self):
        return self.stderr_text.splitlines()

    def check(self):
        if self.returncode != 0:
            raise CommandFailed(self.args, self.returncode, self.stderr_text)
        return self

    def __repr__(self):
        return "CommandResult(%r, returncode=%d)" % (self.args,
                                                     self.returncode)


class LocalHost(object):
    """ The machine testkdc itself runs on, typically the container """

    hostname = 'localhost'

    def run_command(self, args, stdin=None, env=None, raiseonerr=True):
        """ Run a command and collect its output

            :param list args: command and arguments
            :param str stdin: text written to the command's stdin
            :param dict env: variables added to the current environment
            :param bool raiseonerr: raise CommandFailed on non-zero exit
            :return CommandResult: result of the command
            :Exception: Raises CommandFailed
        """
        my_env = os.environ.copy()
        if env is not None:
            my_env.update(env)
        log.debug("Running %s", ' '.join(args))
        try:
            cmd = subprocess.Popen(args,
                                   env=my_env,
                                   stdin=subprocess.PIPE,
                                   stdout=subprocess.PIPE,
                                   stderr=subprocess.PIPE)
        except OSError as err:
            raise CommandFailed(args, 127, err.strerror)
        out, err = cmd.communicate(stdin.encode('utf-8')
                                   if stdin is not None else None)
        result = CommandResult(args, cmd.returncode,
                               out.decode('utf-8', 'replace'),
                               err.decode('utf-8', 'replace'))
        if raiseonerr:
            result.check()
        return result

    def spawn(self, args, env=None):
        """ Start a command in the background and return the Popen object """
        my_env = os.environ.copy()
        if env is not None:
            my_env.update(env)
        log.debug("Spawning %s", ' '.join(args))
        return subprocess.Popen(args, env=my_env)

    def exec_command(self, args, env=None):
        """ Replace the current process with the command """
        my_env = os.environ.copy()
        if env is not None:
            my_env.update(env)
        log.info("Executing %s", ' '.join(args))
        try:
            os.execvpe(args[0], args, my_env)
        except OSError as err:
            raise CommandFailed(args, 127, err.strerror)

    def put_file_contents(self, path, contents, mode=None):
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        if isinstance(contents, str):
            contents = contents.encode('utf-8')
        with open(path, 'wb') as outfile:
            outfile.write(contents)
        if mode is not None:
            os.chmod(path, mode)

    def get_file_contents(self, path):
        with open(path, 'rb') as infile:
            return infile.read()

    def file_exists(self, path):
        return os.path.exists(path)

    def remove_tree(self, path):
        self.run_command(['rm', '-rf', path])


class SSHHost(object):
    """ Remote test machine reached over SSH

        Attributes:
            hostname(str): Remote host name or address
            port(int): SSH port
            username(str): Login user, root is needed to provision a KDC
            password(str): Password, key based login when None
    """

    def __init__(self, hostname, port=22, username='root', password=None,
                 timeout=30):
        self.hostname = hostname
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout
        self._client = None

    @property
    def client(self):
        """ Connected paramiko client in lazy initialized property """
        if self._client is None:
            client = paramiko.SSHClient()
            client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
            try:
                client.connect(self.hostname, port=self.port,
                               username=self.username,
                               password=self.password,
                               timeout=self.timeout)
            except (paramiko.AuthenticationException,
                    paramiko.SSHException,
                    socket.error) as err:
                raise KdcException("Cannot connect to %s: %s"
                                   % (self.hostname, err))
            self._client = client
        return self._client

    def close(self):
        if self._client is not None:
            self._client.close()
            self._client = None

    def run_command(self, args, stdin=None, env=None, raiseonerr=True):
        command = ' '.join(shlex.quote(arg) for arg in args)
        if env:
            exports = ' '.join('%s=%s' % (key, shlex.quote(value))
                               for key, value in env.items())
            command = 'env %s %s' % (exports, command)
        log.debug("Running on %s: %s", self.hostname, command)
        channel = self.client.get_transport().open_session(
            timeout=self.timeout)
        channel.settimeout(self.timeout)
        channel.exec_command(command)
        if stdin is not None:
            channel.sendall(stdin.encode('utf-8'))
        channel.shutdown_write()
        out, err = self._drain(channel)
        returncode = channel.recv_exit_status()
        channel.close()
        result = CommandResult(args, returncode,
                               out.decode('utf-8', 'replace'),
                               err.decode('utf-8', 'replace'))
        if raiseonerr:
            result.check()
        return result

    def _drain(self, channel):
        """ Read stdout and stderr together

            A command blocks once either stream fills the channel window,
            so neither may be read to EOF before the other.
        """
        out = []
        err = []
        while True:
            while channel.recv_ready():
                out.append(channel.recv(RECV_SIZE))
            while channel.recv_stderr_ready():
                err.append(channel.recv_stderr(RECV_SIZE))
            if channel.exit_status_ready() and \
                    not channel.recv_ready() and \
                    not channel.recv_stderr_ready():
                break
            time.sleep(POLL_INTERVAL)
        return b''.join(out), b''.join(err)

    def spawn(self, args, env=None):
        raise KdcException("Background processes are not tracked on %s"
                           % self.hostname)

    def exec_command(self, args, env=None):
        raise KdcException("Cannot exec into a process on %s"
                           % self.hostname)

    def put_file_contents(self, path, contents, mode=None):
        if isinstance(contents, str):
            contents = contents.encode('utf-8')
        directory = posixpath.dirname(path)
        if directory:
            self.run_command(['mkdir', '-p', directory])
        sftp = self.client.open_sftp()
        try:
            with sftp.open(path, 'wb') as outfile:
                outfile.write(contents)
            if mode is not None:
                sftp.chmod(path, mode)
        finally:
            sftp.close()

    def get_file_contents(self, path):
        sftp = self.client.open_sftp()
        try:
            with sftp.open(path, 'rb') as infile:
                return infile.read()
        finally:
            sftp.close()

    def file_exists(self, path):
        result = self.run_command(['test', '-e', path], raiseonerr=False)
        return result.returncode == 0

    def remove_tree(self, path):
        self.run_command(['rm', '-rf', path])
