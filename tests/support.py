# Copyright (C) 2016 g10 Code GmbH
#
# This file is part of GPGME.
#
# GPGME is free software; you can redistribute it and/or modify it
# under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 2 of the License, or
# (at your option) any later version.
#
# GPGME is distributed in the hope that it will be useful, but WITHOUT
# ANY WARRANTY; without even the implied warranty of MERCHANTABILITY
# or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU Lesser General
# Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public
# License along with this program; if not, see <https://www.gnu.org/licenses/>.
"""An in-memory engine for the test-suite

MemoryEngine implements the primitives of gpgctx.engine against a
keyring held in memory.  The "cryptography" is a transparent JSON
envelope, armored or not; what matters is that status values,
out-parameters, chunked reads, buffer positions and callbacks behave
like GPGME does.

"""

import base64
import hashlib
import json
import os
import types

import gpgctx
from gpgctx import constants, errors
from gpgctx.constants.data import encoding as data_encoding
from gpgctx.constants.data import type as data_type
from gpgctx.engine import Engine

# known keys
alpha = "A0FF4590BB6122EDEF6E3C542D727CC768697734"
bob = "D695676BDCEDCC2CDD6152BCFE180B1DA9E3B0B2"
encrypt_only = "F52770D5C4DB41408D918C9F920572769B9FE19C"
no_such_key = "A" * 40

CREATED = 1136073600  # 2006-01-01
EXPIRES = 1893456000  # 2030-01-01


def status(code):
    return errors.make_error(errors.SOURCE_GPGME, code)


def make_key(fpr, name, email, secret=False, can_sign=True, expires=0,
             revoked=False):
    """A keyring entry."""
    return dict(
        fpr=fpr,
        name=name,
        email=email,
        secret=secret,
        can_sign=can_sign,
        expires=expires,
        revoked=revoked)


def default_keyring():
    return [
        make_key(alpha, "Alfa Test", "alfa@example.net", secret=True),
        make_key(bob, "Bob", "bob@example.net", expires=EXPIRES),
        make_key(encrypt_only, "Echo Test", "echo@example.net",
                 can_sign=False),
    ]


def key_struct(entry, mode=constants.KEYLIST_MODE_LOCAL, secret=None):
    """What GPGME hands out for a keyring entry."""
    flags = dict(
        revoked=int(entry['revoked']),
        expired=0,
        disabled=0,
        invalid=0,
        can_encrypt=1,
        can_sign=int(entry['can_sign']),
        can_certify=int(entry['can_sign']),
        can_authenticate=0,
        secret=int(entry['secret'] if secret is None else secret))
    subkey = types.SimpleNamespace(
        pubkey_algo=1,
        length=2048,
        keyid=entry['fpr'][-16:],
        fpr=entry['fpr'],
        timestamp=CREATED,
        expires=entry['expires'],
        **flags)
    certification = types.SimpleNamespace(
        pubkey_algo=1,
        keyid=entry['fpr'][-16:],
        uid=entry['name'],
        name=entry['name'],
        email=entry['email'],
        comment='',
        revoked=0,
        expired=0,
        invalid=0,
        exportable=1,
        timestamp=CREATED,
        expires=0)
    uid = types.SimpleNamespace(
        validity=constants.VALIDITY_ULTIMATE
        if entry['secret'] else constants.VALIDITY_FULL,
        uid="{} <{}>".format(entry['name'], entry['email']),
        name=entry['name'],
        comment='',
        email=entry['email'],
        revoked=0,
        invalid=0,
        signatures=[certification]
        if mode & constants.KEYLIST_MODE_SIGS else [])
    return types.SimpleNamespace(
        fpr=entry['fpr'],
        keylist_mode=mode,
        protocol=constants.PROTOCOL_OpenPGP,
        owner_trust=constants.VALIDITY_ULTIMATE
        if entry['secret'] else constants.VALIDITY_UNKNOWN,
        issuer_serial=None,
        issuer_name=None,
        chain_id=None,
        subkeys=[subkey],
        uids=[uid],
        **flags)


_kinds = {
    'encrypted': (b'MESSAGE', b'\xa3'),
    'signature': (b'SIGNATURE', b'\x88'),
    'pubkeys': (b'PUBLIC KEY BLOCK', b'\x99'),
    'seckeys': (b'PRIVATE KEY BLOCK', b'\x95'),
}


def pack(payload, armor):
    """Serialize an envelope."""
    body = json.dumps(payload, sort_keys=True).encode()
    label, tag = _kinds[payload['type']]
    if not armor:
        return tag + body
    lines = base64.b64encode(body)
    lines = b'\n'.join(lines[i:i + 64] for i in range(0, len(lines), 64))
    return (b'-----BEGIN PGP ' + label + b'-----\n\n' + lines +
            b'\n-----END PGP ' + label + b'-----\n')


def unpack(blob):
    """Parse an envelope, or return None."""
    blob = bytes(blob)
    try:
        if blob.startswith(b'-----BEGIN PGP '):
            lines = blob.split(b'\n')
            body = base64.b64decode(b''.join(
                l for l in lines[1:] if l and not l.startswith(b'-----')))
        elif blob[:1] in [tag for _, tag in _kinds.values()]:
            body = blob[1:]
        else:
            return None
        payload = json.loads(body.decode())
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(payload, dict) or payload.get('type') not in _kinds:
        return None
    return payload


def tamper(blob):
    """Change the signed text inside a normal signature."""
    payload = unpack(blob)
    text = base64.b64decode(payload['data'])
    payload['data'] = base64.b64encode(text.upper()).decode()
    return pack(payload, blob.startswith(b'-----'))


def _b64(data):
    return base64.b64encode(bytes(data)).decode()


def _digest(data):
    return hashlib.sha256(bytes(data)).hexdigest()


class MemoryData(object):
    """A data object of the MemoryEngine."""

    def __init__(self, buffer=None, owned=True, path=None, cbs=None,
                 hook=None):
        self.buffer = bytearray() if buffer is None else buffer
        self.owned = owned
        self.path = path
        self.cbs = cbs
        self.hook = hook
        self.position = 0
        self.encoding = data_encoding.NONE
        self.released = False

    def _cb(self, index, *args):
        func = self.cbs[index]
        if self.hook is not None:
            return func(*(args + (self.hook, )))
        return func(*args)

    def _contents(self):
        if self.path is not None:
            with open(self.path, 'rb') as fp:
                return fp.read()
        return self.buffer

    def read(self, size):
        if self.cbs is not None:
            return bytes(self._cb(0, size))
        chunk = bytes(self._contents()[self.position:self.position + size])
        self.position += len(chunk)
        return chunk

    def write(self, data):
        if self.cbs is not None:
            return self._cb(1, bytes(data))
        if self.path is not None:
            self.buffer = bytearray(self._contents())
            self.path = None
        if not self.owned:
            # Copy on write, referenced memory is never modified.
            self.buffer = bytearray(self.buffer)
            self.owned = True
        self.buffer[self.position:self.position + len(data)] = data
        self.position += len(data)
        return len(data)

    def seek(self, offset, whence):
        if self.cbs is not None:
            return self._cb(2, offset, whence)
        if whence == os.SEEK_SET:
            position = offset
        elif whence == os.SEEK_CUR:
            position = self.position + offset
        else:
            position = len(self._contents()) + offset
        if position < 0:
            return -1
        self.position = position
        return position

    def rest(self):
        """Everything after the current position, consumed."""
        chunks = []
        while True:
            chunk = self.read(4096)
            if not chunk:
                return b''.join(chunks)
            chunks.append(chunk)

    def peek(self):
        """All of the contents, the position is kept."""
        if self.cbs is None:
            return bytes(self._contents())
        position = self.seek(0, os.SEEK_CUR)
        self.seek(0, os.SEEK_SET)
        try:
            return self.rest()
        finally:
            self.seek(position, os.SEEK_SET)

    def release(self):
        if self.cbs is not None:
            self._cb(3)
        self.released = True


class MemoryContext(object):
    def __init__(self):
        self.protocol = constants.PROTOCOL_OpenPGP
        self.armor = False
        self.textmode = False
        self.keylist_mode = constants.KEYLIST_MODE_LOCAL
        self.signers = []
        self.passphrase_cb = None
        self.progress_cb = None
        self.cursor = None
        self.verify_result = None
        self.import_result = None
        self.engine_info = {}
        self.released = False


def _callback(cb, *args):
    func, hook = cb
    if hook is not None:
        return func(*(args + (hook, )))
    return func(*args)


class MemoryEngine(Engine):
    """See the module documentation."""

    name = 'memory'

    def __init__(self, keyring=None):
        self.keyring = default_keyring() if keyring is None else keyring
        # fpr -> passphrase required to use the secret key
        self.passphrases = {}
        self.calls = []
        self.failures = {}
        self.contexts = []
        self.data = []
        self.generated = 0

    def fail_on(self, name, code, after=0):
        """Make the primitive NAME fail with CODE, once, after AFTER
        successful invocations."""
        self.failures[name] = (after, code)

    def count(self, name):
        return self.calls.count(name)

    def call(self, name, *args):
        self.calls.append(name)
        plan = self.failures.get(name)
        if plan is not None:
            after, code = plan
            if after == 0:
                del self.failures[name]
                return status(code)
            self.failures[name] = (after - 1, code)
        return super(MemoryEngine, self).call(name, *args)

    # Helpers.

    def _find(self, fpr):
        for entry in self.keyring:
            if entry['fpr'] == fpr or (len(fpr) >= 8
                                       and entry['fpr'].endswith(fpr)):
                return entry
        return None

    def _matches(self, entry, pattern):
        if pattern is None:
            return True
        if not isinstance(pattern, str):
            return any(self._matches(entry, p) for p in pattern)
        return (pattern in entry['fpr'] or pattern in entry['name']
                or pattern in entry['email'])

    def _unlock(self, ctx, fpr):
        passphrase = self.passphrases.get(fpr)
        if passphrase is None:
            return errors.NO_ERROR
        if ctx.passphrase_cb is None:
            return status(errors.BAD_PASSPHRASE)
        given = _callback(ctx.passphrase_cb, fpr[-16:],
                          "{} {}".format(fpr[-16:], fpr[-16:]), False)
        if given != passphrase:
            return status(errors.BAD_PASSPHRASE)
        return errors.NO_ERROR

    def _progress(self, ctx, what, current, total):
        if ctx.progress_cb is not None:
            _callback(ctx.progress_cb, what, ord('+'), current, total)

    # Contexts.

    def _new(self, ref):
        ref.value = MemoryContext()
        self.contexts.append(ref.value)

    def _release(self, ctx):
        ctx.cursor = None
        ctx.passphrase_cb = ctx.progress_cb = None
        ctx.released = True

    def _set_protocol(self, ctx, proto):
        if proto not in (constants.PROTOCOL_OpenPGP, constants.PROTOCOL_CMS):
            return status(errors.INV_VALUE)
        ctx.protocol = proto

    def _get_protocol(self, ctx, ref):
        ref.value = ctx.protocol

    def _set_armor(self, ctx, yes):
        ctx.armor = yes

    def _get_armor(self, ctx, ref):
        ref.value = ctx.armor

    def _set_textmode(self, ctx, yes):
        ctx.textmode = yes

    def _get_textmode(self, ctx, ref):
        ref.value = ctx.textmode

    def _set_keylist_mode(self, ctx, mode):
        ctx.keylist_mode = mode

    def _get_keylist_mode(self, ctx, ref):
        ref.value = ctx.keylist_mode

    def _set_passphrase_cb(self, ctx, func, hook):
        ctx.passphrase_cb = None if func is None else (func, hook)

    def _set_progress_cb(self, ctx, func, hook):
        ctx.progress_cb = None if func is None else (func, hook)

    def _engine_infos(self):
        return [
            types.SimpleNamespace(
                protocol=constants.PROTOCOL_OpenPGP,
                file_name='/usr/bin/gpg',
                version='2.2.40',
                req_version='1.4.0',
                home_dir=None),
            types.SimpleNamespace(
                protocol=constants.PROTOCOL_CMS,
                file_name='/usr/bin/gpgsm',
                version='2.2.40',
                req_version='2.0.4',
                home_dir=None),
        ]

    def _ctx_set_engine_info(self, ctx, proto, file_name, home_dir):
        ctx.engine_info[proto] = (file_name, home_dir)

    def _ctx_get_engine_info(self, ctx, ref):
        infos = self._engine_infos()
        for info in infos:
            file_name, home_dir = ctx.engine_info.get(info.protocol,
                                                      (None, None))
            if file_name is not None:
                info.file_name = file_name
            if home_dir is not None:
                info.home_dir = home_dir
        ref.value = infos

    # Key management.

    def _op_keylist_start(self, ctx, pattern, secret_only):
        keys = [
            key_struct(entry, ctx.keylist_mode) for entry in self.keyring
            if self._matches(entry, pattern) and (entry['secret']
                                                  or not secret_only)
        ]
        ctx.cursor = iter(keys)

    def _op_keylist_next(self, ctx, ref):
        if ctx.cursor is None:
            return status(errors.INV_VALUE)
        try:
            ref.value = next(ctx.cursor)
        except StopIteration:
            ctx.cursor = None
            return status(errors.EOF)

    def _op_keylist_end(self, ctx):
        ctx.cursor = None

    def _get_key(self, ctx, fpr, ref, secret):
        entry = self._find(fpr)
        if entry is None or (secret and not entry['secret']):
            return status(errors.EOF)
        ref.value = key_struct(entry, ctx.keylist_mode)

    def _export(self, entries, secret, armor):
        keys = [dict(entry, secret=secret) for entry in entries]
        return pack(dict(type='seckeys' if secret else 'pubkeys', keys=keys),
                    armor)

    def _op_genkey(self, ctx, parms, pubkey, seckey):
        fields = {}
        for line in parms.splitlines():
            if ':' in line:
                key, value = line.split(':', 1)
                fields[key.strip()] = value.strip()
        if 'Name-Real' not in fields:
            return status(errors.INV_VALUE)
        self.generated += 1
        fpr = hashlib.sha1('{}{}'.format(
            parms, self.generated).encode()).hexdigest().upper()
        entry = make_key(fpr, fields['Name-Real'],
                         fields.get('Name-Email', ''), secret=True)
        for step in range(1, 4):
            self._progress(ctx, 'primegen', step, 3)
        if pubkey is None and seckey is None:
            self.keyring.append(entry)
            return
        if pubkey is not None:
            pubkey.write(self._export([entry], False, ctx.armor))
        if seckey is not None:
            seckey.write(self._export([entry], True, ctx.armor))

    def _op_export(self, ctx, pattern, keydata):
        entries = [e for e in self.keyring if self._matches(e, pattern)]
        if entries:
            keydata.write(self._export(entries, False, ctx.armor))

    def _op_import(self, ctx, keydata):
        payload = unpack(keydata.rest())
        if payload is None or payload['type'] not in ('pubkeys', 'seckeys'):
            return status(errors.NO_DATA)
        result = types.SimpleNamespace(
            considered=0, no_user_id=0, imported=0, imported_rsa=0,
            unchanged=0, new_user_ids=0, new_sub_keys=0, new_signatures=0,
            new_revocations=0, secret_read=0, secret_imported=0,
            secret_unchanged=0, not_imported=0, imports=[])
        for key in payload['keys']:
            result.considered += 1
            if key['secret']:
                result.secret_read += 1
            existing = self._find(key['fpr'])
            if existing is None:
                self.keyring.append(make_key(
                    key['fpr'], key['name'], key['email'],
                    secret=key['secret'], can_sign=key['can_sign'],
                    expires=key['expires'], revoked=key['revoked']))
                result.imported += 1
                if key['secret']:
                    result.secret_imported += 1
                flags = 1
            else:
                result.unchanged += 1
                flags = 0
            result.imports.append(types.SimpleNamespace(
                fpr=key['fpr'], result=errors.NO_ERROR, status=flags))
        ctx.import_result = result

    def _op_import_result(self, ctx, ref):
        ref.value = ctx.import_result

    def _op_delete(self, ctx, key, allow_secret):
        entry = self._find(key.fpr)
        if entry is None:
            return status(errors.NO_PUBKEY)
        if entry['secret'] and not allow_secret:
            return status(errors.CONFLICT)
        self.keyring.remove(entry)

    # Crypto operations.

    def _op_decrypt(self, ctx, cipher, plain):
        payload = unpack(cipher.rest())
        if payload is None or payload['type'] != 'encrypted':
            return status(errors.NO_DATA)
        for fpr in payload['to']:
            entry = self._find(fpr)
            if entry is not None and entry['secret']:
                err = self._unlock(ctx, fpr)
                if err:
                    return err
                plain.write(base64.b64decode(payload['data']))
                return
        return status(errors.NO_SECKEY)

    def _op_verify(self, ctx, sig, signed_text, plain):
        payload = unpack(sig.rest())
        if payload is None or payload['type'] != 'signature':
            return status(errors.NO_DATA)
        if payload['data'] is None:
            if signed_text is None:
                return status(errors.INV_VALUE)
            text = signed_text.rest()
        else:
            text = base64.b64decode(payload['data'])
            if plain is not None:
                plain.write(text)

        signatures = []
        for made in payload['signatures']:
            if self._find(made['fpr']) is None:
                code = errors.NO_PUBKEY
                summary = constants.SIGSUM_KEY_MISSING
                validity = constants.VALIDITY_UNKNOWN
            elif made['digest'] != _digest(text):
                code = errors.BAD_SIGNATURE
                summary = constants.SIGSUM_RED
                validity = constants.VALIDITY_UNKNOWN
            else:
                code = errors.NO_ERROR
                summary = constants.SIGSUM_VALID | constants.SIGSUM_GREEN
                validity = constants.VALIDITY_FULL
            signatures.append(types.SimpleNamespace(
                summary=summary,
                fpr=made['fpr'],
                status=errors.make_error(errors.SOURCE_GPGME, code),
                validity=validity,
                validity_reason=errors.NO_ERROR,
                pubkey_algo=1,
                hash_algo=8,
                wrong_key_usage=0,
                timestamp=made['timestamp'],
                exp_timestamp=0,
                notations=[types.SimpleNamespace(
                    name=name, value=value, flags=0, critical=0,
                    human_readable=1)
                    for name, value in made['notations']]))
        ctx.verify_result = types.SimpleNamespace(
            file_name=None, signatures=signatures)

    def _op_verify_result(self, ctx, ref):
        ref.value = ctx.verify_result

    def _signers_clear(self, ctx):
        del ctx.signers[:]

    def _signers_add(self, ctx, key):
        entry = self._find(key.fpr)
        if entry is None:
            return status(errors.INV_VALUE)
        ctx.signers.append(entry)

    def _op_sign(self, ctx, plain, sig, mode):
        signers = ctx.signers or [e for e in self.keyring if e['secret']][:1]
        if not signers:
            return status(errors.NO_SECKEY)
        text = plain.rest()
        made = []
        for entry in signers:
            if not (entry['secret'] and entry['can_sign']):
                return status(errors.UNUSABLE_SECKEY)
            err = self._unlock(ctx, entry['fpr'])
            if err:
                return err
            made.append(dict(fpr=entry['fpr'], digest=_digest(text),
                             timestamp=CREATED, notations=[]))
        detached = mode == constants.SIG_MODE_DETACH
        payload = dict(type='signature', signatures=made,
                       data=None if detached else _b64(text))
        sig.write(pack(payload, ctx.armor or mode == constants.SIG_MODE_CLEAR))

    def _op_encrypt(self, ctx, recipients, flags, plain, cipher):
        if not recipients and not flags & constants.ENCRYPT_SYMMETRIC:
            return status(errors.INV_VALUE)
        to = []
        for key in recipients:
            entry = self._find(key.fpr)
            if entry is None or entry['revoked']:
                return status(errors.UNUSABLE_PUBKEY)
            to.append(entry['fpr'])
        payload = dict(type='encrypted', to=to, data=_b64(plain.rest()))
        cipher.write(pack(payload, ctx.armor))

    # Data objects.

    def _data_new(self, ref):
        ref.value = MemoryData()
        self.data.append(ref.value)

    def _data_new_from_mem(self, ref, buf, copy):
        if copy:
            ref.value = MemoryData(bytearray(buf))
        else:
            ref.value = MemoryData(buf, owned=False)
        self.data.append(ref.value)

    def _data_new_from_file(self, ref, filename, copy):
        if not os.path.exists(filename):
            return errors.make_error(errors.SOURCE_GPGME,
                                     errors.SYSTEM_ERROR | 81)
        if copy:
            with open(filename, 'rb') as fp:
                ref.value = MemoryData(bytearray(fp.read()))
        else:
            ref.value = MemoryData(path=filename)
        self.data.append(ref.value)

    def _data_new_from_cbs(self, ref, cbs, hook):
        ref.value = MemoryData(cbs=cbs, hook=hook)
        self.data.append(ref.value)

    def _data_release(self, dh):
        dh.release()

    def _data_read(self, dh, size, ref):
        chunk = dh.read(size)
        if not chunk:
            return status(errors.EOF)
        ref.value = chunk

    def _data_write(self, dh, buf, length, ref):
        ref.value = dh.write(buf[:length])

    def _data_seek(self, dh, offset, whence, ref):
        position = dh.seek(offset, whence)
        if position < 0:
            return status(errors.INV_VALUE)
        ref.value = position

    def _data_type(self, dh, ref):
        head = dh.peek()[:64]
        if not head:
            ref.value = data_type.INVALID
        elif head.startswith(b'-----BEGIN PGP SIGNATURE'):
            ref.value = data_type.PGP_SIGNATURE
        elif head.startswith(b'-----BEGIN PGP'):
            ref.value = data_type.PGP_ARMORED
        elif head[:1] == _kinds['signature'][1]:
            ref.value = data_type.PGP_SIGNATURE
        elif head[0] & 0x80:
            ref.value = data_type.PGP_BINARY
        else:
            ref.value = data_type.UNKNOWN

    def _data_get_encoding(self, dh, ref):
        ref.value = dh.encoding

    def _data_set_encoding(self, dh, enc):
        if not data_encoding.NONE <= enc <= data_encoding.MIME:
            return status(errors.INV_VALUE)
        dh.encoding = enc

    # Global queries.

    def _get_engine_info(self, ref):
        ref.value = self._engine_infos()

    def _get_protocol_name(self, proto, ref):
        ref.value = constants.protocol._names.get(proto)


def make_context(engine=None, **kwargs):
    """A Context on ENGINE, a fresh MemoryEngine by default."""
    engine = engine if engine is not None else MemoryEngine()
    return gpgctx.Context(engine=engine, **kwargs)


def make_data(ctx, *args, **kwargs):
    return gpgctx.Data(*args, engine=ctx.engine, **kwargs)
