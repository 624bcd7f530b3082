# Copyright (C) 2016-2017 g10 Code GmbH
# Copyright (C) 2004 Igor Belyi <belyi@users.sourceforge.net>
# Copyright (C) 2002 John Goerzen <jgoerzen@complete.org>
#
#    This library is free software; you can redistribute it and/or
#    modify it under the terms of the GNU Lesser General Public
#    License as published by the Free Software Foundation; either
#    version 2.1 of the License, or (at your option) any later version.
#
#    This library is distributed in the hope that it will be useful,
#    but WITHOUT ANY WARRANTY; without even the implied warranty of
#    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
#    Lesser General Public License for more details.
#
#    You should have received a copy of the GNU Lesser General Public
#    License along with this library; if not, write to the Free Software
#    Foundation, Inc., 59 Temple Place, Suite 330, Boston, MA 02111-1307  USA

import datetime


def process_constants(module, prefix, scope):
    """Called by the constants package to re-export the integer
    constants of MODULE.  Every public integer found there is inserted
    into SCOPE with PREFIX prepended to its name.  Returns the names of
    inserted constants.

    """
    constants = {
        prefix + identifier: value
        for identifier, value in vars(module).items()
        if not identifier.startswith('_') and isinstance(value, int)
    }
    scope.update(constants)
    return list(constants.keys())


def is_a_string(x):
    return isinstance(x, str)


def to_bytes(x):
    """Strings are encoded using UTF-8, anything else is handed through
    unchanged so that mutable buffers keep their identity."""
    if is_a_string(x):
        return x.encode('utf-8')
    return x


def epoch_to_datetime(value):
    """Convert an engine timestamp.

    Zero, negative or missing values mean 'not set' (e.g. a key that
    never expires) and are returned as None.

    """
    if not value or value < 0:
        return None
    return datetime.datetime.fromtimestamp(value, datetime.timezone.utc)
