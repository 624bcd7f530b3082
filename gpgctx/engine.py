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
"""Engine primitives

Everything this package does ends up as a call to a named primitive
of an Engine.  A primitive takes positional arguments, stores any
value it produces in a Ref out-parameter and returns a status value,
which is then classified by gpgctx.errors.

The primitives, with their arguments, are:

  new(ref)                              release(ctx)
  set_protocol(ctx, proto)              get_protocol(ctx, ref)
  set_armor(ctx, yes)                   get_armor(ctx, ref)
  set_textmode(ctx, yes)                get_textmode(ctx, ref)
  set_keylist_mode(ctx, mode)           get_keylist_mode(ctx, ref)
  set_passphrase_cb(ctx, func, hook)    set_progress_cb(ctx, func, hook)
  ctx_set_engine_info(ctx, proto, file_name, home_dir)
  ctx_get_engine_info(ctx, ref)
  op_keylist_start(ctx, pattern, secret_only)
  op_keylist_next(ctx, ref)             op_keylist_end(ctx)
  get_key(ctx, fpr, ref, secret)
  op_genkey(ctx, parms, pubkey, seckey)
  op_export(ctx, pattern, keydata)
  op_import(ctx, keydata)               op_import_result(ctx, ref)
  op_delete(ctx, key, allow_secret)
  op_decrypt(ctx, cipher, plain)
  op_verify(ctx, sig, signed_text, plain)
  op_verify_result(ctx, ref)
  signers_clear(ctx)                    signers_add(ctx, key)
  op_sign(ctx, plain, sig, mode)
  op_encrypt(ctx, recipients, flags, plain, cipher)
  data_new(ref)                         data_new_from_mem(ref, buf, copy)
  data_new_from_file(ref, filename, copy)
  data_new_from_cbs(ref, cbs, hook)     data_release(dh)
  data_read(dh, size, ref)              data_write(dh, buf, length, ref)
  data_seek(dh, offset, whence, ref)    data_type(dh, ref)
  data_get_encoding(dh, ref)            data_set_encoding(dh, enc)
  get_engine_info(ref)                  get_protocol_name(proto, ref)

'ctx' and 'dh' are the opaque handles produced by 'new' and the
'data_new*' primitives.  Keys are handed back to the engine as the
very objects it produced.  'data_read' reports the end of the data
with the EOF status, never with an empty chunk.

"""

import logging

from . import errors

log = logging.getLogger(__name__)


class Ref(object):
    """An out-parameter

    Primitives that produce a value store it in 'value'.

    """

    def __init__(self, value=None):
        self.value = value

    def __repr__(self):
        return 'Ref({!r})'.format(self.value)


class Engine(object):
    """Base class of engine implementations

    Subclasses implement a primitive NAME as a method '_NAME'.  Status
    values are composed as in libgpg-error; subclasses talking to a
    real library should delegate the decomposition and the rendering
    of messages to it.

    """

    name = None

    _messages = {
        errors.NO_ERROR: 'Success',
        errors.GENERAL: 'General error',
        errors.BAD_SIGNATURE: 'Bad signature',
        errors.NO_PUBKEY: 'No public key',
        errors.CHECKSUM: 'Checksum error',
        errors.BAD_PASSPHRASE: 'Bad passphrase',
        errors.NO_SECKEY: 'No secret key',
        errors.NOT_FOUND: 'Not found',
        errors.UNUSABLE_PUBKEY: 'Unusable public key',
        errors.UNUSABLE_SECKEY: 'Unusable secret key',
        errors.INV_VALUE: 'Invalid value',
        errors.NO_DATA: 'No data',
        errors.NOT_IMPLEMENTED: 'Not implemented',
        errors.CONFLICT: 'Conflicting use',
        errors.CANCELED: 'Operation cancelled',
        errors.INV_ENGINE: 'Invalid crypto engine',
        errors.INV_STATE: 'Invalid state',
        errors.EOF: 'End of file',
        errors.ENOMEM: 'Cannot allocate memory',
    }

    _sources = {
        errors.SOURCE_UNKNOWN: 'Unspecified source',
        errors.SOURCE_GPGME: 'GPGME',
        errors.SOURCE_USER_1: 'User defined source 1',
    }

    def call(self, name, *args):
        """Invoke the primitive NAME and return its status."""
        func = getattr(self, '_' + name, None)
        if func is None:
            log.debug("%s: primitive %s is not available", self, name)
            return errors.make_error(errors.SOURCE_GPGME,
                                     errors.NOT_IMPLEMENTED)
        return func(*args) or errors.NO_ERROR

    def err_code(self, status):
        return errors.err_code(status)

    def err_source(self, status):
        return errors.err_source(status)

    def strerror(self, status):
        code = self.err_code(status)
        return self._messages.get(code, 'Unknown error code {}'.format(code))

    def strsource(self, status):
        source = self.err_source(status)
        return self._sources.get(source, 'Unknown source {}'.format(source))

    def __repr__(self):
        return '<{} engine {!r}>'.format(self.__class__.__name__, self.name)


_default = None


def get_engine():
    """Return the process-wide engine, loading the GPGME binding on
    first use."""
    global _default
    if _default is None:
        from .binding import GpgmeEngine
        _default = GpgmeEngine()
        log.debug("loaded default engine %r", _default)
    return _default


def set_engine(engine):
    """Install ENGINE as the process-wide engine.

    Contexts and data buffers created afterwards use it unless they
    are given an engine explicitly.  Returns the previous engine, which
    may be None.

    """
    global _default
    old, _default = _default, engine
    return old
