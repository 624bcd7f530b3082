# Robust result objects
#
# Copyright (C) 2016 g10 Code GmbH
#
# This file is part of GPGME.
#
# GPGME is free software; you can redistribute it and/or modify it
# under the terms of the GNU Lesser General Public License as
# published by the Free Software Foundation; either version 2.1 of the
# License, or (at your option) any later version.
#
# GPGME is distributed in the hope that it will be useful, but WITHOUT
# ANY WARRANTY; without even the implied warranty of MERCHANTABILITY
# or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU Lesser General
# Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public
# License along with this program; if not, see <https://www.gnu.org/licenses/>.
"""Robust result objects

Structs handed out by the engine are fragile, i.e. they are only
valid until the next operation is performed in the context.

We cannot arbitrarily constrain the lifetime of Python objects, we
therefore copy them into read-only records.  Records are built by
marshal() only; application code receives them from Context
operations and never instantiates them.

"""

from . import util

_flag = bool


class Record(object):
    """Record object

    Describes something the engine reported.

    """
    """Copy as they are"""
    _fields = ()
    """Convert to types"""
    _type = {}
    """Map record types over list attributes"""
    _map = {}
    """Keep the engine struct, it is handed back to the engine"""
    _keep_handle = False

    def __init__(self, *args, **kwargs):
        raise TypeError("{} records are created by the engine binding only"
                        .format(self.__class__.__name__))

    def __setattr__(self, key, value):
        raise AttributeError("{} records are read-only"
                             .format(self.__class__.__name__))

    def __delattr__(self, key):
        raise AttributeError("{} records are read-only"
                             .format(self.__class__.__name__))

    def __repr__(self):
        return '{}({})'.format(
            self.__class__.__name__,
            ', '.join('{}={!r}'.format(k, getattr(self, k)) for k in dir(self)
                      if not k.startswith('_')))


def marshal(cls, fragile):
    """Build a CLS record from the engine struct FRAGILE."""
    record = object.__new__(cls)
    setter = object.__setattr__

    for key in cls._fields:
        setter(record, key, getattr(fragile, key, None))

    for key, func in cls._type.items():
        setter(record, key, func(getattr(fragile, key, None)))

    for key, subcls in cls._map.items():
        items = getattr(fragile, key, None) or ()
        setter(record, key, tuple(marshal(subcls, item) for item in items))

    setter(record, '_handle', fragile if cls._keep_handle else None)
    return record


_key_flags = dict(
    revoked=_flag,
    expired=_flag,
    disabled=_flag,
    invalid=_flag,
    can_encrypt=_flag,
    can_sign=_flag,
    can_certify=_flag,
    can_authenticate=_flag,
    secret=_flag)


class KeySig(Record):
    """A signature on a user ID"""
    _fields = ('pubkey_algo', 'keyid', 'uid', 'name', 'email', 'comment')
    _type = dict(
        revoked=_flag,
        expired=_flag,
        invalid=_flag,
        exportable=_flag,
        timestamp=util.epoch_to_datetime,
        expires=util.epoch_to_datetime)


class UserId(Record):
    _fields = ('validity', 'uid', 'name', 'comment', 'email')
    _type = dict(revoked=_flag, invalid=_flag)
    _map = dict(signatures=KeySig)


class SubKey(Record):
    """A subkey

    'timestamp' is the creation time, 'expires' the expiration time.
    Both are timezone aware datetimes, or None if the engine did not
    set them; a subkey without expiration has expires == None.

    """
    _fields = ('pubkey_algo', 'length', 'keyid', 'fpr')
    _type = dict(
        _key_flags,
        timestamp=util.epoch_to_datetime,
        expires=util.epoch_to_datetime)


class Key(Record):
    """A public or secret key

    The first element of 'subkeys' is the primary key.

    """
    _fields = ('keylist_mode', 'protocol', 'owner_trust', 'issuer_serial',
               'issuer_name', 'chain_id')
    _type = _key_flags
    _map = dict(subkeys=SubKey, uids=UserId)
    _keep_handle = True

    @property
    def fpr(self):
        """Fingerprint of the primary key"""
        fpr = getattr(self._handle, 'fpr', None)
        if fpr is None and self.subkeys:
            fpr = self.subkeys[0].fpr
        return fpr

    @property
    def keyid(self):
        """Key ID of the primary key"""
        return self.subkeys[0].keyid if self.subkeys else None


class Notation(Record):
    """A signature notation, or a policy URL if 'name' is None"""
    _fields = ('name', 'value', 'flags')
    _type = dict(critical=_flag, human_readable=_flag)


class Signature(Record):
    """One signature of a verification

    'status' is an engine status value, NO_ERROR for a good
    signature; 'summary' is a combination of constants.sigsum bits.

    """
    _fields = ('summary', 'fpr', 'status', 'validity', 'validity_reason',
               'pubkey_algo', 'hash_algo')
    _type = dict(
        wrong_key_usage=_flag,
        timestamp=util.epoch_to_datetime,
        exp_timestamp=util.epoch_to_datetime)
    _map = dict(notations=Notation)


class VerifyResult(Record):
    _fields = ('file_name', )
    _map = dict(signatures=Signature)


class ImportStatus(Record):
    _fields = ('fpr', 'result', 'status')


class ImportResult(Record):
    _fields = ('considered', 'no_user_id', 'imported', 'imported_rsa',
               'unchanged', 'new_user_ids', 'new_sub_keys', 'new_signatures',
               'new_revocations', 'secret_read', 'secret_imported',
               'secret_unchanged', 'not_imported')
    _map = dict(imports=ImportStatus)


class EngineInfo(Record):
    _fields = ('protocol', 'file_name', 'version', 'req_version', 'home_dir')
