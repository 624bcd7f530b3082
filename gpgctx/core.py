# -*- coding: utf-8 -*-

import collections
import logging
import os

from . import constants
from . import errors
from . import results
from . import util
from .engine import Ref, get_engine

# Copyright (C) 2016-2018 g10 Code GmbH
# Copyright (C) 2004, 2008 Igor Belyi <belyi@users.sourceforge.net>
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
"""Core functionality

The engine wrapped in a object-oriented fashion.  Provides the
'Context' class for performing cryptographic operations, and the
'Data' class describing buffers of data.

Neither class is thread-safe: an instance must not be used from more
than one thread at a time.  Distinct instances are independent.

"""

log = logging.getLogger(__name__)


class GpgmeWrapper(object):
    """Base wrapper class

    Owns an engine handle and funnels every primitive invoked on it
    through the status translation in gpgctx.errors.  Not to be
    instantiated directly.

    """

    def __init__(self, wrapped, engine=None):
        self._engine = engine if engine is not None else get_engine()
        self.wrapped = wrapped

    def __repr__(self):
        return '<{}/{!r}>'.format(
            super(GpgmeWrapper, self).__repr__(), self.wrapped)

    def __str__(self):
        acc = ['{}.{}'.format(__name__, self.__class__.__name__)]
        flags = [f for f in sorted(self._boolean_properties)
                 if getattr(self, f)]
        if flags:
            acc.append('({})'.format(' '.join(flags)))

        return '<{}>'.format(' '.join(acc))

    def __hash__(self):
        return hash(repr(self.wrapped))

    def __eq__(self, other):
        if other is None:
            return False
        else:
            return repr(self.wrapped) == repr(getattr(other, 'wrapped', other))

    """The set of all boolean properties"""
    _boolean_properties = set()

    @property
    def engine(self):
        """The engine this object talks to"""
        return self._engine

    def _create(self, name, *args):
        """Invoke a constructor primitive and return the new handle."""
        ref = Ref()
        errors.errorcheck(self._engine.call(name, ref, *args), name,
                          self._engine)
        return ref.value

    def _status(self, name, *args):
        if self.wrapped is None:
            return errors.make_error(errors.SOURCE_GPGME, errors.INV_VALUE)
        return self._engine.call(name, self.wrapped, *args)

    def _call(self, name, *args):
        errors.errorcheck(self._status(name, *args), name, self._engine)

    def _get(self, name, *args):
        """Invoke NAME with a trailing out-parameter and return its value."""
        ref = Ref()
        self._call(name, *(args + (ref, )))
        return ref.value

    def _usage_error(self, message):
        errors.errorcheck(
            errors.make_error(errors.SOURCE_GPGME, errors.INV_STATE),
            message, self._engine)


# Outcomes of a single step of a key listing.
Item = collections.namedtuple('Item', ['key'])
Done = collections.namedtuple('Done', [])
Fault = collections.namedtuple('Fault', ['error'])

IDLE = 'idle'
LISTING = 'listing'


def _unwrap(data):
    return None if data is None else data.wrapped


class Context(GpgmeWrapper):
    """Context for cryptographic operations

    All cryptographic operations are performed within a context, which
    contains the internal state of the operation as well as
    configuration parameters.  By using several contexts you can run
    several cryptographic operations in parallel, with different
    configuration.

    Access to a context must be synchronized.  Passphrase and progress
    callbacks run on the thread that started the operation, in the
    middle of it; they must not start another operation on the same
    context.

    """

    def __init__(self,
                 armor=False,
                 textmode=False,
                 protocol=constants.PROTOCOL_OpenPGP,
                 keylist_mode=constants.KEYLIST_MODE_LOCAL,
                 signers=(),
                 home_dir=None,
                 engine=None):
        """Construct a context object

        Keyword arguments:
        armor		-- enable ASCII armoring (default False)
        textmode	-- enable canonical text mode (default False)
        protocol	-- protocol to use (default PROTOCOL_OpenPGP)
        keylist_mode	-- key listing mode (default KEYLIST_MODE_LOCAL)
        signers		-- list of keys used for signing (default [])
        home_dir	-- state directory (default is the engine default)
        engine		-- engine to use (default engine.get_engine())

        """
        super(Context, self).__init__(None, engine)
        self._passphrase_cb = None
        self._progress_cb = None
        self._signers = []
        self._keylist_state = IDLE
        self.wrapped = self._create('new')
        self.protocol = protocol
        self.armor = armor
        self.textmode = textmode
        self.keylist_mode = keylist_mode
        self.signers = signers
        if home_dir is not None:
            self.home_dir = home_dir

    def __repr__(self):
        return ("Context(armor={0.armor}, "
                "textmode={0.textmode}, protocol={0.protocol}, "
                "keylist_mode={0.keylist_mode}, signers={0.signers}"
                ")").format(self)

    _boolean_properties = {'armor', 'textmode'}

    @property
    def protocol(self):
        """Protocol to use"""
        return self._get('get_protocol')

    @protocol.setter
    def protocol(self, value):
        self._call('set_protocol', value)

    @property
    def armor(self):
        """ASCII armored output"""
        return self._get('get_armor')

    @armor.setter
    def armor(self, value):
        self._call('set_armor', bool(value))

    @property
    def textmode(self):
        """Canonical text mode"""
        return self._get('get_textmode')

    @textmode.setter
    def textmode(self, value):
        self._call('set_textmode', bool(value))

    @property
    def keylist_mode(self):
        """Key listing mode, a combination of constants.keylist.mode bits"""
        return self._get('get_keylist_mode')

    @keylist_mode.setter
    def keylist_mode(self, value):
        self._call('set_keylist_mode', value)

    @property
    def engine_info(self):
        """Configuration of the engine currently in use"""
        p = self.protocol
        infos = [
            results.marshal(results.EngineInfo, i)
            for i in self._get('ctx_get_engine_info') or ()
            if i.protocol == p
        ]
        assert len(infos) == 1
        return infos[0]

    def set_engine_info(self, proto, file_name=None, home_dir=None):
        """Change engine configuration

        Changes the configuration of the crypto engine implementing
        the protocol 'proto' for the context.

        Keyword arguments:
        file_name	-- engine program file name (unchanged if None)
        home_dir	-- configuration directory (unchanged if None)

        """
        self._call('ctx_set_engine_info', proto, file_name, home_dir)

    @property
    def home_dir(self):
        """Engine's home directory"""
        return self.engine_info.home_dir

    @home_dir.setter
    def home_dir(self, value):
        self.set_engine_info(self.protocol, home_dir=value)

    # Callbacks.

    @property
    def passphrase_cb(self):
        """The registered (function, hook) pair, or None"""
        return self._passphrase_cb

    def set_passphrase_cb(self, func, hook=None):
        """Sets the passphrase callback to the function specified by func.

        When the engine needs a passphrase, it will call func with three
        args: hint, a string describing the key it needs the passphrase
        for; desc, a string describing the passphrase it needs;
        prev_bad, a boolean equal True if this is a call made after
        unsuccessful previous attempt.

        If hook has a value other than None it will be passed into the
        func as a forth argument.  If func is None, the callback is
        cleared.  Registering does not invoke the callback.

        """
        self._call('set_passphrase_cb', func, hook)
        self._passphrase_cb = None if func is None else (func, hook)

    @property
    def progress_cb(self):
        """The registered (function, hook) pair, or None"""
        return self._progress_cb

    def set_progress_cb(self, func, hook=None):
        """Sets the progress meter callback to the function specified by FUNC.
        If FUNC is None, the callback will be cleared.

        This function will be called to provide an interactive update
        of the engine's progress.  The function will be called with
        four arguments, what, type, current, and total.  If HOOK is
        not None, it will be supplied as fifth argument.

        """
        self._call('set_progress_cb', func, hook)
        self._progress_cb = None if func is None else (func, hook)

    # Key listing.

    def keylist_start(self, pattern=None, secret_only=False):
        """Initiates a key listing operation for given pattern.

        If pattern is None, all available keys are returned.  If
        secret_only is True, the list is restricted to secret keys
        only.  Only one listing may be in progress per context.

        """
        if self._keylist_state == LISTING:
            self._usage_error('keylist_start: a key listing is in progress')
        self._call('op_keylist_start', pattern, secret_only)
        self._keylist_state = LISTING
        log.debug("%r: key listing started for %r", self, pattern)

    def keylist_next(self):
        """Returns the next key in the list created by a previous
        keylist_start operation.

        Raises EndOfFile once the list is exhausted, which also ends
        the listing.

        """
        if self._keylist_state != LISTING:
            self._usage_error('keylist_next: no key listing in progress')
        try:
            key = self._get('op_keylist_next')
        except errors.EndOfFile:
            self._keylist_state = IDLE
            log.debug("%r: key listing exhausted", self)
            raise
        return results.marshal(results.Key, key)

    def keylist_end(self):
        """End a pending key list operation."""
        self._keylist_state = IDLE
        self._call('op_keylist_end')

    def _keylist_step(self):
        try:
            return Item(self.keylist_next())
        except errors.EndOfFile:
            return Done()
        except Exception as e:
            return Fault(e)

    def _abort_keylist(self, outcome):
        """End the listing and raise the error of the Fault OUTCOME.

        If ending the listing fails too, that failure is chained to the
        original error as its cause.

        """
        error = outcome.error
        del outcome
        try:
            try:
                self.keylist_end()
            except Exception as e:
                raise error from e
            raise error
        finally:
            del error

    def each_key(self, func, pattern=None, secret_only=False):
        """Call FUNC with every key matching PATTERN.

        When the list is exhausted, the engine has already closed the
        listing and nothing else is done.  If the engine fails in
        between, or FUNC raises, the listing is ended before the error
        propagates.

        """
        self.keylist_start(pattern, secret_only)
        while True:
            outcome = self._keylist_step()
            if isinstance(outcome, Done):
                return
            if isinstance(outcome, Item):
                try:
                    func(outcome.key)
                except BaseException as e:
                    outcome = Fault(e)
            if isinstance(outcome, Fault):
                # Frames on the traceback must not hold the error.
                try:
                    self._abort_keylist(outcome)
                finally:
                    del outcome

    def keylist(self, pattern=None, secret_only=False):
        """List keys

        A generator over the keys matching PATTERN, with the cleanup
        rules of each_key: the listing is ended if the engine fails or
        the generator is closed before the list is exhausted.

        """
        self.keylist_start(pattern, secret_only)
        while True:
            outcome = self._keylist_step()
            if isinstance(outcome, Done):
                return
            if isinstance(outcome, Fault):
                try:
                    self._abort_keylist(outcome)
                finally:
                    del outcome
            key = outcome.key
            del outcome
            try:
                yield key
            except BaseException:
                self.keylist_end()
                raise

    def get_key(self, fpr, secret=False):
        """Get a key given a fingerprint

        Keyword arguments:
        secret		-- to request a secret key

        Returns:
                        -- the matching key

        Raises:
        KeyError	-- if the key was not found
        GPGMEError	-- as signaled by the engine

        """
        ref = Ref()
        error = errors.classify(
            self._status('get_key', fpr, ref, secret), 'get_key',
            self._engine)
        if isinstance(error, errors.EndOfFile):
            error = errors.KeyNotFound(fpr, self._engine)
        if error is not None:
            try:
                raise error
            finally:
                del error
        return results.marshal(results.Key, ref.value)

    # Key management.

    def _release_all(self, *buffers):
        for data in buffers:
            if data is not None:
                data.release()

    def genkey(self, parms, store=False):
        """Generates a new key pair.

        If store is True, the key pair goes into the keyring and
        (None, None) is returned.  Otherwise the public and the secret
        key are returned as two Data objects.

        """
        pubkey = seckey = None
        try:
            if not store:
                pubkey = Data(engine=self._engine)
                seckey = Data(engine=self._engine)
            self._call('op_genkey', parms, _unwrap(pubkey), _unwrap(seckey))
        except BaseException:
            self._release_all(pubkey, seckey)
            raise
        return pubkey, seckey

    def key_export(self, pattern=None):
        """Export keys

        Returns the public keys matching PATTERN in a new Data object,
        positioned after the exported data.  Rewind it before reading.

        """
        keydata = Data(engine=self._engine)
        try:
            self._call('op_export', pattern, keydata.wrapped)
        except BaseException:
            keydata.release()
            raise
        return keydata

    def key_import(self, keydata):
        """Add the keys in KEYDATA to the keyring.

        Returns:
        result		-- an ImportResult

        """
        self._call('op_import', _unwrap(self._as_data(keydata)))
        return self.import_result()

    def import_result(self):
        return results.marshal(results.ImportResult,
                               self._get('op_import_result'))

    def delete(self, key, allow_secret=False):
        """Delete KEY from the keyring.

        If allow_secret is False, only public keys are deleted and
        deleting a key with secret material fails.

        """
        self._call('op_delete', key._handle, allow_secret)

    # Signers.

    @property
    def signers(self):
        """Keys used for signing"""
        return list(self._signers)

    @signers.setter
    def signers(self, signers):
        old = self.signers
        self.clear_signers()
        try:
            for key in signers:
                self.add_signer(key)
        except BaseException:
            self.signers = old
            raise

    def clear_signers(self):
        """Removes the list of signers from this context."""
        self._call('signers_clear')
        del self._signers[:]

    def add_signer(self, key):
        """Add KEY to the signers used by subsequent sign calls."""
        self._call('signers_add', key._handle)
        self._signers.append(key)

    # Crypto operations.

    def _as_data(self, data):
        if data is None or isinstance(data, Data):
            return data
        return Data(data, engine=self._engine)

    def _into(self, sink, name, *args):
        try:
            self._call(name, *args)
        except BaseException:
            sink.release()
            raise
        return sink

    def decrypt(self, cipher):
        """Decrypt the ciphertext and return the plaintext."""
        plain = Data(engine=self._engine)
        return self._into(plain, 'op_decrypt',
                          _unwrap(self._as_data(cipher)), plain.wrapped)

    def verify(self, sig, signed_text=None, plain=None):
        """Verify a signature

        For a detached signature, SIGNED_TEXT is the data that was
        signed.  Otherwise the signed data is recovered into PLAIN, or
        into a new Data object if PLAIN is None, and returned.

        Bad signatures are not errors; inspect verify_result().

        """
        sig = self._as_data(sig)
        signed_text = self._as_data(signed_text)
        if signed_text is not None:
            self._call('op_verify', sig.wrapped, signed_text.wrapped,
                       _unwrap(plain))
            return plain
        if plain is not None:
            self._call('op_verify', sig.wrapped, None, plain.wrapped)
            return plain
        plain = Data(engine=self._engine)
        return self._into(plain, 'op_verify', sig.wrapped, None,
                          plain.wrapped)

    def verify_result(self):
        """The VerifyResult of the last verify call."""
        return results.marshal(results.VerifyResult,
                               self._get('op_verify_result'))

    def sign(self, plain, mode=constants.SIG_MODE_NORMAL):
        """Create a signature for the text in PLAIN.

        The current signers, armor and textmode settings apply.

        """
        sig = Data(engine=self._engine)
        return self._into(sig, 'op_sign', _unwrap(self._as_data(plain)),
                          sig.wrapped, mode)

    def encrypt(self, recipients, plain, flags=0):
        """Encrypt the plaintext in PLAIN for RECIPIENTS and return the
        ciphertext."""
        cipher = Data(engine=self._engine)
        return self._into(cipher, 'op_encrypt',
                          [key._handle for key in recipients], flags,
                          _unwrap(self._as_data(plain)), cipher.wrapped)

    # Lifetime.

    def release(self):
        """Release the engine context.

        A pending key listing and the registered callbacks go with it.

        """
        if getattr(self, 'wrapped', None) is None:
            return
        wrapped, self.wrapped = self.wrapped, None
        self._keylist_state = IDLE
        self._passphrase_cb = None
        self._progress_cb = None
        errors.errorcheck(self._engine.call('release', wrapped), 'release',
                          self._engine)

    def __del__(self):
        self.release()

    # Implement the context manager protocol.
    def __enter__(self):
        return self

    def __exit__(self, type, value, tb):
        self.release()


class Data(GpgmeWrapper):
    """Data buffer

    A lot of data has to be exchanged between the user and the crypto
    engine, like plaintext messages, ciphertext, signatures and
    information about the keys.  The user provides and receives the
    data via Data objects, regardless of the communication protocol
    between the engine and the crypto backend in use.

    Please see the information about __init__ for instantiation.

    """

    BLOCK_SIZE = 4096

    def __init__(self,
                 string=None,
                 file=None,
                 cbs=None,
                 copy=True,
                 engine=None):
        """Initialize a new data object.

        If no args are specified, make it an empty object.

        If string alone is specified, initialize it with the data
        contained there.  With copy=False the object references the
        given buffer, which must then stay alive and unmodified as long
        as the object is in use.

        If file is specified, it must be a filename, and the object
        will be initialized from that file.  With copy=False, the file
        is read lazily.

        If cbs is specified, it MUST be a tuple of the form:

        (read_cb, write_cb, seek_cb, release_cb[, hook])

        where the first four items are functions implementing reading,
        writing, seeking the data, and releasing any resources once
        the data object is deallocated.  The functions must match the
        following prototypes:

            def read(amount, hook=None):
                return <a b"bytes" object>

            def write(data, hook=None):
                return <the number of bytes written>

            def seek(offset, whence, hook=None):
                return <the new file position>

            def release(hook=None):
                <return value and exceptions are ignored>

        The functions may be bound methods.  In that case, you can
        simply use the 'self' reference instead of using a hook.

        """
        super(Data, self).__init__(None, engine)
        self._data_cbs = None

        if cbs is not None:
            self.new_from_cbs(*cbs)
            source = 'callbacks'
        elif string is not None:
            self.new_from_mem(string, copy)
            source = 'memory'
        elif file is not None:
            self.new_from_file(file, copy)
            source = 'file'
        else:
            self.new()
            source = 'nothing'
        log.debug("%r: created from %s (copy=%s)", self, source, copy)

    def new(self):
        self.wrapped = self._create('data_new')

    def new_from_mem(self, string, copy=True):
        self.wrapped = self._create('data_new_from_mem', util.to_bytes(string),
                                    copy)

    def new_from_file(self, filename, copy=True):
        self.wrapped = self._create('data_new_from_file', filename, copy)

    def new_from_cbs(self, read_cb, write_cb, seek_cb, release_cb, hook=None):
        self._data_cbs = (read_cb, write_cb, seek_cb, release_cb, hook)
        self.wrapped = self._create('data_new_from_cbs',
                                    (read_cb, write_cb, seek_cb, release_cb),
                                    hook)

    def write(self, buffer, length=None):
        """Write LENGTH bytes of buffer given as string or bytes.

        If a string is given, it is implicitly encoded using UTF-8.
        Returns the number of bytes written.

        """
        buffer = util.to_bytes(buffer)
        if length is None:
            length = len(buffer)
        return self._get('data_write', buffer, length)

    def _read(self, size):
        return self._get('data_read', size)

    def read(self, size=-1):
        """Read at most size bytes, returned as bytes.

        Raises EndOfFile if no data is left at the current position,
        e.g. on any sized read from an empty buffer.

        If the size argument is negative or omitted, read until EOF is
        reached and return everything read.  EOF only terminates this
        loop, so an empty buffer yields b'' rather than EndOfFile.
        Errors other than EOF propagate, and what was read so far is
        lost.

        """
        if size == 0:
            return b''

        if size is not None and size > 0:
            return self._read(size)

        chunks = []
        while True:
            try:
                chunks.append(self._read(self.BLOCK_SIZE))
            except errors.EndOfFile:
                break
        return b''.join(chunks)

    def seek(self, offset, whence=os.SEEK_SET):
        """Seek the data pointer, returns the new position."""
        return self._get('data_seek', offset, whence)

    def rewind(self):
        """Reset the data pointer."""
        return self.seek(0, os.SEEK_SET)

    def data_type(self):
        """Return the type of the underlying data.

        One of the constants.data.type values.

        """
        return self._get('data_type')

    def get_encoding(self):
        return self._get('data_get_encoding')

    def set_encoding(self, value):
        self._call('data_set_encoding', value)

    encoding = property(get_encoding, set_encoding,
                        doc="Encoding hint, one of constants.data.encoding")

    def release(self):
        if getattr(self, 'wrapped', None) is None:
            return
        wrapped, self.wrapped = self.wrapped, None
        try:
            errors.errorcheck(self._engine.call('data_release', wrapped),
                              'data_release', self._engine)
        finally:
            self._data_cbs = None

    def __del__(self):
        self.release()

    # Implement the context manager protocol.
    def __enter__(self):
        return self

    def __exit__(self, type, value, tb):
        self.release()


def get_protocol_name(proto, engine=None):
    """Get protocol description

    Get the string describing protocol PROTO.

    Returns:
    proto     - a string

    """
    engine = engine if engine is not None else get_engine()
    ref = Ref()
    errors.errorcheck(
        engine.call('get_protocol_name', proto, ref), 'get_protocol_name',
        engine)
    return ref.value


def get_engine_info(engine=None):
    """Get engine configuration

    Returns information about all configured engine backends, in the
    order the engine reports them.  Needs no context.

    Returns:
    infos		-- a list of EngineInfo records

    """
    engine = engine if engine is not None else get_engine()
    ref = Ref()
    errors.errorcheck(
        engine.call('get_engine_info', ref), 'get_engine_info', engine)
    return [results.marshal(results.EngineInfo, i) for i in ref.value or ()]


engine_info = get_engine_info
