#
# Port checks for a running KDC
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
import socket
import time
import logging

from . import paths

log = logging.getLogger(__name__)

# Socket states in /proc/net/*, see include/net/tcp_states.h
TCP_LISTEN = '0A'
UDP_UNCONNECTED = '07'


def parse_proc_net(text, state):
    """ Local ports of sockets in a given state

        :param str text: contents of a /proc/net/{tcp,udp}[6] table
        :param str state: hexadecimal socket state
        :return set: local port numbers
    """
    ports = set()
    for line in text.splitlines()[1:]:
        fields = line.split()
        if len(fields) < 4 or fields[3] != state:
            continue
        port = fields[1].rpartition(':')[2]
        ports.add(int(port, 16))
    return ports


def bound_ports(host, proto):
    """ Ports with a listening (tcp) or bound (udp) socket on host """
    state = TCP_LISTEN if proto == 'tcp' else UDP_UNCONNECTED
    ports = set()
    for table in (proto, proto + '6'):
        try:
            text = host.get_file_contents('%s/%s' % (paths.PROC_NET, table))
        except IOError:
            log.debug("No %s table", table)
            continue
        ports |= parse_proc_net(text.decode('ascii', 'replace'), state)
    return ports


def is_listening(host, port, proto):
    return port in bound_ports(host, proto)


def tcp_connect(address, port, timeout=1.0):
    try:
        with socket.create_connection((address, port), timeout=timeout):
            return True
    except OSError:
        return False


def wait_for_port(address, port, attempts=50, delay=0.1):
    """ Poll until a TCP connection to address:port succeeds """
    for _ in range(attempts):
        if tcp_connect(address, port):
            return True
        time.sleep(delay)

    log.warning("%s:%d did not accept connections", address, port)
    return False
