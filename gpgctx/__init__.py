# Copyright (C) 2016 g10 Code GmbH
# Copyright (C) 2004 Igor Belyi <belyi@users.sourceforge.net>
# Copyright (C) 2002 John Goerzen <jgoerzen@complete.org>
#
# This library is free software; you can redistribute it and/or
# modify it under the terms of the GNU Lesser General Public
# License as published by the Free Software Foundation; either
# version 2.1 of the License, or (at your option) any later version.
#
# This library is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
# Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public
# License along with this library; if not, write to the Free Software
# Foundation, Inc., 59 Temple Place, Suite 330, Boston, MA 02111-1307  USA
"""gpgctx: sessions and data buffers over GPGME

FEATURES
--------

 * Contexts carrying protocol, armor, text mode, key listing mode,
   signers and callbacks across operations.

 * Ability to sign, encrypt, decrypt, and verify data.

 * Ability to list keys, export and import keys, and manage the keyring.

 * Data buffers backed by memory, files, or Python callbacks.

 * Keys, signatures and verification results as read-only records.

QUICK EXAMPLE
-------------

    >>> import gpgctx
    >>> with gpgctx.Context(armor=True) as c:
    ...     key = c.get_key("A0FF4590BB6122EDEF6E3C542D727CC768697734")
    ...     cipher = c.encrypt([key], gpgctx.Data(b"Hello world :)"))
    ...     cipher.rewind()
    ...     plain = c.decrypt(cipher)
    ...     plain.rewind()
    ...     plain.read()
    ...
    b'Hello world :)'

GENERAL OVERVIEW
----------------

Every operation is a call to a primitive of the engine (see
gpgctx.engine); by default that is GPGME, reached through the
low-level module of the 'gpg' bindings.  Status values are checked
in one place: failures raise gpgctx.errors.GPGMEError, exhausted
streams and key listings raise gpgctx.errors.EndOfFile.

Output buffers filled by an operation are positioned after the data
written to them; rewind them before reading.

Contexts and data buffers are not thread-safe.

"""

from . import core
from . import errors
from . import constants
from . import engine
from . import results
from . import util
from . import callbacks
from . import version
from .core import Context
from .core import Data
from .core import engine_info

# This is a white-list of symbols.  Any other will alert pyflakes.
_ = [Context, Data, engine_info, core, errors, constants, engine, results,
     util, callbacks, version]
del _

__all__ = [
    "Context", "Data", "engine_info", "core", "errors", "constants",
    "engine", "results", "util", "callbacks", "version"
]
