#
# Kerberos principal records
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
import re

from .exceptions import InvalidInput

ATTRIBUTE_RE = re.compile(r'^[+-][a-z_]+$')


class Principal(object):
    """
    Principal to be registered in the KDC database

    A principal without a password gets a random key.
    """

    def __init__(self, name, password=None, attributes=()):
        if not isinstance(name, str) or not name or \
                any(c.isspace() or c == '"' for c in name):
            raise InvalidInput("Invalid principal name %r" % (name,))
        # kadmin queries quote the password with double quotes
        if password is not None and \
                (not isinstance(password, str) or '"' in password):
            raise InvalidInput("Invalid password for principal %s" % name)
        if not isinstance(attributes, (list, tuple)):
            raise InvalidInput("Invalid principal attributes %r"
                               % (attributes,))
        for attr in attributes:
            if not isinstance(attr, str) or not ATTRIBUTE_RE.match(attr):
                raise InvalidInput("Invalid principal attribute %r" % (attr,))
        self.name = name
        self.password = password
        self.attributes = list(attributes)

    def __repr__(self):
        return "Principal(%r, attributes=%r)" % (self.name, self.attributes)

    def __eq__(self, other):
        if not isinstance(other, Principal):
            return NotImplemented
        return (self.name, self.password, self.attributes) == \
            (other.name, other.password, other.attributes)

    def qualify(self, realm):
        if "@" in self.name:
            return self.name
        return "%s@%s" % (self.name, realm)

    @property
    def requires_preauth(self):
        return '+requires_preauth' in self.attributes

    def addprinc_query(self):
        """ kadmin query creating this principal """
        args = ['addprinc'] + self.attributes
        if self.password is None:
            args.append('-randkey')
        else:
            args += ['-pw', '"%s"' % self.password]
        args.append('"%s"' % self.name)
        return ' '.join(args)

    @classmethod
    def from_dict(cls, entry):
        if isinstance(entry, str):
            return cls(entry)
        try:
            name = entry['name']
        except (KeyError, TypeError):
            raise InvalidInput("Principal entry without a name: %r" % (entry,))
        attributes = entry.get('attributes') or []
        if isinstance(attributes, str):
            attributes = attributes.split()
        password = entry.get('password')
        if password is not None:
            password = str(password)
        return cls(name, password, attributes)

    def to_dict(self):
        out = {'name': self.name}
        if self.password is not None:
            out['password'] = self.password
        if self.attributes:
            out['attributes'] = list(self.attributes)
        return out


def default_principals():
    return [
        Principal('testuser', 'password'),
        Principal('testuser_preauth', 'password', ['+requires_preauth']),
        Principal('admin/admin', 'password'),
    ]


def parse_getprinc(text):
    """ Parse "Key: value" lines of kadmin getprinc output into a dict """
    out = {}
    for line in text.splitlines():
        if ':' not in line or line.startswith('Authenticating as'):
            continue
        (key, value) = line.split(":", 1)
        out[key.strip()] = value.strip()
    return out
