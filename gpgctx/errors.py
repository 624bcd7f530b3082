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
"""Errors and status translation

Every status value returned by the engine is classified here, and
nowhere else.  A status is either success, the end-of-stream marker,
or a failure carrying the raw value.

"""

import logging

log = logging.getLogger(__name__)

# Error codes, numbered as in libgpg-error.
NO_ERROR = 0
GENERAL = 1
BAD_SIGNATURE = 8
NO_PUBKEY = 9
CHECKSUM = 10
BAD_PASSPHRASE = 11
NO_SECKEY = 17
NOT_FOUND = 27
UNUSABLE_PUBKEY = 53
UNUSABLE_SECKEY = 54
INV_VALUE = 55
NO_DATA = 58
NOT_IMPLEMENTED = 69
CONFLICT = 70
CANCELED = 99
INV_ENGINE = 150
INV_STATE = 156
EOF = 16383
# System errors live above this bit.
SYSTEM_ERROR = 1 << 15
ENOMEM = SYSTEM_ERROR | 86

# Error sources.
SOURCE_UNKNOWN = 0
SOURCE_GPGME = 7
SOURCE_USER_1 = 32

CODE_MASK = 0xffff
SOURCE_MASK = 0x7f
SOURCE_SHIFT = 24


def make_error(source, code):
    """Build a status value from SOURCE and CODE."""
    if code == NO_ERROR:
        return NO_ERROR
    return ((source & SOURCE_MASK) << SOURCE_SHIFT) | (code & CODE_MASK)


def err_code(status):
    return status & CODE_MASK


def err_source(status):
    return (status >> SOURCE_SHIFT) & SOURCE_MASK


class GpgError(Exception):
    """A GPG Error

    This is the base of all errors thrown by this library.

    If the error originated from the engine, then additional
    information can be found by looking at 'code' for the error code,
    and 'source' for the errors origin.  Suitable constants for
    comparison are defined in this module.  'code_str' and
    'source_str' are human-readable versions of the former two
    properties, rendered by the engine that reported the error.

    If 'context' is not None, then it contains a human-readable hint
    as to where the error originated from.

    If 'results' is not None, it is a tuple containing results of the
    operation that failed.

    """

    def __init__(self, error=None, context=None, results=None, engine=None):
        self.error = error
        self.context = context
        self.results = results
        self.engine = engine

    @property
    def code(self):
        if self.error is None:
            return None
        if self.engine is None:
            return err_code(self.error)
        return self.engine.err_code(self.error)

    @property
    def code_str(self):
        if self.error is None:
            return None
        if self.engine is None:
            return 'Error code {}'.format(self.code)
        return self.engine.strerror(self.error)

    @property
    def source(self):
        if self.error is None:
            return None
        if self.engine is None:
            return err_source(self.error)
        return self.engine.err_source(self.error)

    @property
    def source_str(self):
        if self.error is None:
            return None
        if self.engine is None:
            return 'Source {}'.format(self.source)
        return self.engine.strsource(self.error)

    def __str__(self):
        msgs = []
        if self.context is not None:
            msgs.append(self.context)
        if self.error is not None:
            msgs.append(self.source_str)
            msgs.append(self.code_str)
        return ': '.join(msgs)


class GPGMEError(GpgError):
    '''Generic error

    This is the failure raised whenever an engine primitive reports
    anything but success or end-of-stream.  The numeric code and the
    rendered message are all this layer knows about it.

    '''

    @property
    def message(self):
        return self.code_str

    def getstring(self):
        return str(self)

    def getcode(self):
        return self.code

    def getsource(self):
        return self.source


class EndOfFile(GpgError, EOFError):
    """Raised when a stream or a key listing is exhausted

    This is not a failure.  Loops driven by the caller terminate on
    it.

    """


class KeyNotFound(GPGMEError, KeyError):
    """Raised if a key was not found

    The engine indicates this condition with EOF, which is not very
    idiomatic.  We raise this error that is both a GPGMEError
    indicating EOF, and a KeyError.

    """

    def __init__(self, keystr, engine=None):
        self.keystr = keystr
        GPGMEError.__init__(
            self, make_error(SOURCE_GPGME, EOF), engine=engine)

    def __str__(self):
        return self.keystr


def classify(status, context=None, engine=None):
    """Classify STATUS as returned by an engine primitive.

    Returns None on success.  Otherwise an EndOfFile instance for the
    end-of-stream marker, or a GPGMEError instance for anything else.
    The returned exception is not raised.

    """
    if not status:
        return None
    code = engine.err_code(status) if engine is not None else err_code(status)
    if code == NO_ERROR:
        return None
    if code == EOF:
        return EndOfFile(status, context, engine=engine)
    error = GPGMEError(status, context, engine=engine)
    log.debug("%s failed: %s", context or 'engine call', error.code_str)
    return error


def errorcheck(retval, extradata=None, engine=None):
    error = classify(retval, extradata, engine)
    if error is not None:
        # A frame holding the exception it raised forms a cycle with the
        # traceback, pinning every object on the stack.
        try:
            raise error
        finally:
            del error
