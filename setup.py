#!/usr/bin/env python3

# Module: installer
# COPYRIGHT #
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
# END OF COPYRIGHT #

import os
import sys

from setuptools import setup

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
from gpgctx import version  # noqa: E402

setup(
    name="gpgctx",
    version=version.versionstr,
    description=version.description,
    author=version.author,
    author_email=version.author_email,
    url=version.homepage,
    packages=[
        'gpgctx', 'gpgctx.constants', 'gpgctx.constants.data',
        'gpgctx.constants.keylist', 'gpgctx.constants.sig'
    ],
    python_requires='>=3.6',
    extras_require={
        # The GPGME bindings need libgpgme and its headers to build.
        'gpgme': ['gpg>=1.10.0'],
        'test': ['pytest'],
    },
    license=version.copyright +
    ", Licensed under the GPL version 2 and the LGPL version 2.1",
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: GNU Lesser General Public License v2 or later (LGPLv2+)',
        'Programming Language :: Python :: 3',
        'Topic :: Security :: Cryptography',
        'Topic :: Software Development :: Libraries :: Python Modules',
    ])
