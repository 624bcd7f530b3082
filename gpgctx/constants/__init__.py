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
"""Constants

The values follow the numbering of the GPGME C library.  Each concern
lives in its own submodule (e.g. constants.protocol.OpenPGP); all of
them are also available here with a prefix (e.g. PROTOCOL_OpenPGP).

"""

from .. import util
from . import data, encrypt, keylist, protocol, sig, sigsum, validity

util.process_constants(protocol, 'PROTOCOL_', globals())
util.process_constants(keylist.mode, 'KEYLIST_MODE_', globals())
util.process_constants(data.type, 'DATA_TYPE_', globals())
util.process_constants(data.encoding, 'DATA_ENCODING_', globals())
util.process_constants(sig.mode, 'SIG_MODE_', globals())
util.process_constants(sigsum, 'SIGSUM_', globals())
util.process_constants(validity, 'VALIDITY_', globals())
util.process_constants(encrypt, 'ENCRYPT_', globals())
del util

__all__ = ['data', 'encrypt', 'keylist', 'protocol', 'sig', 'sigsum',
           'validity']
