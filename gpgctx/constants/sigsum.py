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

VALID = 0x0001
GREEN = 0x0002
RED = 0x0004
KEY_REVOKED = 0x0010
KEY_EXPIRED = 0x0020
SIG_EXPIRED = 0x0040
KEY_MISSING = 0x0080
CRL_MISSING = 0x0100
CRL_TOO_OLD = 0x0200
BAD_POLICY = 0x0400
SYS_ERROR = 0x0800
TOFU_CONFLICT = 0x1000
