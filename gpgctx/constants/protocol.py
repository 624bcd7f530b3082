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

OpenPGP = 0
CMS = 1
GPGCONF = 2
ASSUAN = 3
G13 = 4
UISERVER = 5
SPAWN = 6
DEFAULT = 254
UNKNOWN = 255

_names = {
    OpenPGP: 'OpenPGP',
    CMS: 'CMS',
    GPGCONF: 'GPGCONF',
    ASSUAN: 'Assuan',
    G13: 'G13',
    UISERVER: 'UIServer',
    SPAWN: 'Spawn',
    DEFAULT: 'default',
    UNKNOWN: 'unknown',
}
