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
"""GPGME engine

The production Engine, implemented on top of the low-level SWIG
module of the GPGME Python bindings (gpg.gpgme).  Structs handed out
by GPGME (keys, results, engine infos) are returned as they are;
gpgctx.results turns them into read-only records.

"""

import os
import weakref

from . import errors
from .constants.data import type as data_type
from .engine import Engine


class _Handle(object):
    """The Python side of a GPGME object

    The callback helpers of the bindings look for 'wrapped' and
    '_callback_excinfo' on it, and for '_ctype' when it is passed as
    an argument.

    """

    _ctype = None

    def __init__(self, wrapped=None):
        self.wrapped = wrapped
        self._callback_excinfo = None

    def __repr__(self):
        return '<{} {!r}>'.format(self._ctype, self.wrapped)


class _ContextHandle(_Handle):
    _ctype = 'gpgme_ctx_t'


class _DataHandle(_Handle):
    _ctype = 'gpgme_data_t'

    def __init__(self, wrapped=None, buffer=None):
        super(_DataHandle, self).__init__(wrapped)
        # Referenced memory must outlive the data object.
        self._buffer = buffer
        self._data_cbs = None


class _KeyHandle(_Handle):
    """A reference to a gpgme_key_t

    Attributes are looked up on the key.  The reference is dropped
    when the handle is collected.

    """

    _ctype = 'gpgme_key_t'

    def __init__(self, wrapped, unref):
        super(_KeyHandle, self).__init__(wrapped)
        self._unref = unref

    def __getattr__(self, name):
        wrapped = self.__dict__.get('wrapped')
        if wrapped is None or name.startswith('_'):
            raise AttributeError(name)
        return getattr(wrapped, name)

    def __del__(self):
        wrapped = self.__dict__.get('wrapped')
        if wrapped is not None:
            self.wrapped = None
            self._unref(wrapped)


class GpgmeEngine(Engine):
    """Engine backed by libgpgme"""

    name = 'gpgme'

    _armor_sniff = 64

    def __init__(self):
        from gpg import errors as gpg_errors
        from gpg import gpgme
        self.gpgme = gpgme
        self.gpg_errors = gpg_errors

    def _raise_callback_exception(self, handle):
        if handle is not None and handle._callback_excinfo:
            self.gpgme.gpg_raise_callback_exception(handle)

    def _syserror(self):
        return self.gpgme.gpgme_err_code_from_syserror()

    def _eof(self):
        return errors.make_error(errors.SOURCE_GPGME, errors.EOF)

    # Status rendering.

    def err_code(self, status):
        return self.gpgme.gpgme_err_code(status)

    def err_source(self, status):
        return self.gpgme.gpgme_err_source(status)

    def strerror(self, status):
        return self.gpgme.gpgme_strerror(status)

    def strsource(self, status):
        return self.gpgme.gpgme_strsource(status)

    # Contexts.

    def _new(self, ref):
        tmp = self.gpgme.new_gpgme_ctx_t_p()
        status = self.gpgme.gpgme_new(tmp)
        if not status:
            ref.value = _ContextHandle(self.gpgme.gpgme_ctx_t_p_value(tmp))
        self.gpgme.delete_gpgme_ctx_t_p(tmp)
        return status

    def _release(self, ctx):
        self.gpgme.gpg_set_passphrase_cb(ctx, None)
        self.gpgme.gpg_set_progress_cb(ctx, None)
        self.gpgme.gpgme_release(ctx.wrapped)
        ctx.wrapped = None

    def _set_protocol(self, ctx, proto):
        return self.gpgme.gpgme_set_protocol(ctx.wrapped, proto)

    def _get_protocol(self, ctx, ref):
        ref.value = self.gpgme.gpgme_get_protocol(ctx.wrapped)

    def _set_armor(self, ctx, yes):
        self.gpgme.gpgme_set_armor(ctx.wrapped, 1 if yes else 0)

    def _get_armor(self, ctx, ref):
        ref.value = bool(self.gpgme.gpgme_get_armor(ctx.wrapped))

    def _set_textmode(self, ctx, yes):
        self.gpgme.gpgme_set_textmode(ctx.wrapped, 1 if yes else 0)

    def _get_textmode(self, ctx, ref):
        ref.value = bool(self.gpgme.gpgme_get_textmode(ctx.wrapped))

    def _set_keylist_mode(self, ctx, mode):
        return self.gpgme.gpgme_set_keylist_mode(ctx.wrapped, mode)

    def _get_keylist_mode(self, ctx, ref):
        ref.value = self.gpgme.gpgme_get_keylist_mode(ctx.wrapped)

    def _hookdata(self, handle, func, hook):
        if func is None:
            return None
        if hook is None:
            return (weakref.ref(handle), func)
        return (weakref.ref(handle), func, hook)

    def _set_passphrase_cb(self, ctx, func, hook):
        self.gpgme.gpg_set_passphrase_cb(ctx, self._hookdata(ctx, func, hook))

    def _set_progress_cb(self, ctx, func, hook):
        self.gpgme.gpg_set_progress_cb(ctx, self._hookdata(ctx, func, hook))

    def _ctx_set_engine_info(self, ctx, proto, file_name, home_dir):
        return self.gpgme.gpgme_ctx_set_engine_info(ctx.wrapped, proto,
                                                     file_name, home_dir)

    def _ctx_get_engine_info(self, ctx, ref):
        ref.value = self.gpgme.gpgme_ctx_get_engine_info(ctx.wrapped)

    # Key management.

    def _op_keylist_start(self, ctx, pattern, secret_only):
        return self.gpgme.gpgme_op_keylist_start(ctx.wrapped, pattern,
                                                 1 if secret_only else 0)

    def _key(self, ptr):
        # GPGME hands out a new reference to the key.
        return _KeyHandle(self.gpgme.gpgme_key_t_p_value(ptr),
                          self.gpgme.gpgme_key_unref)

    def _op_keylist_next(self, ctx, ref):
        ptr = self.gpgme.new_gpgme_key_t_p()
        status = self.gpgme.gpgme_op_keylist_next(ctx.wrapped, ptr)
        if not status:
            ref.value = self._key(ptr)
        self.gpgme.delete_gpgme_key_t_p(ptr)
        return status

    def _op_keylist_end(self, ctx):
        return self.gpgme.gpgme_op_keylist_end(ctx.wrapped)

    def _get_key(self, ctx, fpr, ref, secret):
        ptr = self.gpgme.new_gpgme_key_t_p()
        status = self.gpgme.gpgme_get_key(ctx.wrapped, fpr, ptr,
                                          1 if secret else 0)
        if not status:
            ref.value = self._key(ptr)
        self.gpgme.delete_gpgme_key_t_p(ptr)
        return status

    def _op_genkey(self, ctx, parms, pubkey, seckey):
        status = self.gpgme.gpgme_op_genkey(ctx.wrapped, parms, pubkey, seckey)
        self._raise_callback_exception(ctx)
        return status

    def _op_export(self, ctx, pattern, keydata):
        if pattern is None or isinstance(pattern, str):
            return self.gpgme.gpgme_op_export(ctx.wrapped, pattern, 0, keydata)
        return self.gpgme.gpgme_op_export_ext(ctx.wrapped, list(pattern), 0,
                                              keydata)

    def _op_import(self, ctx, keydata):
        return self.gpgme.gpgme_op_import(ctx.wrapped, keydata)

    def _op_import_result(self, ctx, ref):
        ref.value = self.gpgme.gpgme_op_import_result(ctx.wrapped)

    def _op_delete(self, ctx, key, allow_secret):
        return self.gpgme.gpgme_op_delete(ctx.wrapped, key.wrapped,
                                          1 if allow_secret else 0)

    # Crypto operations.

    def _op_decrypt(self, ctx, cipher, plain):
        status = self.gpgme.gpgme_op_decrypt(ctx.wrapped, cipher, plain)
        self._raise_callback_exception(ctx)
        return status

    def _op_verify(self, ctx, sig, signed_text, plain):
        status = self.gpgme.gpgme_op_verify(ctx.wrapped, sig, signed_text,
                                            plain)
        self._raise_callback_exception(ctx)
        return status

    def _op_verify_result(self, ctx, ref):
        ref.value = self.gpgme.gpgme_op_verify_result(ctx.wrapped)

    def _signers_clear(self, ctx):
        self.gpgme.gpgme_signers_clear(ctx.wrapped)

    def _signers_add(self, ctx, key):
        return self.gpgme.gpgme_signers_add(ctx.wrapped, key.wrapped)

    def _op_sign(self, ctx, plain, sig, mode):
        status = self.gpgme.gpgme_op_sign(ctx.wrapped, plain, sig, mode)
        self._raise_callback_exception(ctx)
        return status

    def _op_encrypt(self, ctx, recipients, flags, plain, cipher):
        status = self.gpgme.gpgme_op_encrypt(ctx.wrapped,
                                             [k.wrapped for k in recipients],
                                             flags, plain, cipher)
        self._raise_callback_exception(ctx)
        return status

    # Data objects.

    def _data_created(self, ref, tmp, status, handle):
        if not status:
            handle.wrapped = self.gpgme.gpgme_data_t_p_value(tmp)
            ref.value = handle
        self.gpgme.delete_gpgme_data_t_p(tmp)
        return status

    def _data_new(self, ref):
        tmp = self.gpgme.new_gpgme_data_t_p()
        status = self.gpgme.gpgme_data_new(tmp)
        return self._data_created(ref, tmp, status, _DataHandle())

    def _data_new_from_mem(self, ref, buf, copy):
        tmp = self.gpgme.new_gpgme_data_t_p()
        status = self.gpgme.gpgme_data_new_from_mem(tmp, buf, len(buf),
                                                    1 if copy else 0)
        handle = _DataHandle(buffer=None if copy else buf)
        return self._data_created(ref, tmp, status, handle)

    def _data_new_from_file(self, ref, filename, copy):
        tmp = self.gpgme.new_gpgme_data_t_p()
        status = self.gpgme.gpgme_data_new_from_file(tmp, filename,
                                                     1 if copy else 0)
        return self._data_created(ref, tmp, status, _DataHandle())

    def _data_new_from_cbs(self, ref, cbs, hook):
        tmp = self.gpgme.new_gpgme_data_t_p()
        handle = _DataHandle()
        read_cb, write_cb, seek_cb, release_cb = cbs
        hookdata = (weakref.ref(handle), read_cb, write_cb, seek_cb,
                    release_cb)
        if hook is not None:
            hookdata += (hook, )
        try:
            self.gpgme.gpg_data_new_from_cbs(handle, hookdata, tmp)
        except self.gpg_errors.GPGMEError as e:
            self.gpgme.delete_gpgme_data_t_p(tmp)
            return e.error
        return self._data_created(ref, tmp, errors.NO_ERROR, handle)

    def _data_release(self, dh):
        self.gpgme.gpgme_data_release(dh.wrapped)
        dh.wrapped = None
        dh._buffer = None
        self._raise_callback_exception(dh)
        dh._data_cbs = None

    def _data_read(self, dh, size, ref):
        try:
            chunk = self.gpgme.gpgme_data_read(dh.wrapped, size)
        except self.gpg_errors.GPGMEError as e:
            self._raise_callback_exception(dh)
            return e.error
        self._raise_callback_exception(dh)
        if not chunk:
            return self._eof()
        ref.value = chunk

    def _data_write(self, dh, buf, length, ref):
        written = self.gpgme.gpgme_data_write(dh.wrapped, buf[:length])
        self._raise_callback_exception(dh)
        if written < 0:
            return self._syserror()
        ref.value = written

    def _data_seek(self, dh, offset, whence, ref):
        position = self.gpgme.gpgme_data_seek(dh.wrapped, offset, whence)
        self._raise_callback_exception(dh)
        if position < 0:
            return self._syserror()
        ref.value = position

    def _data_type(self, dh, ref):
        gpgme = self.gpgme
        position = gpgme.gpgme_data_seek(dh.wrapped, 0, os.SEEK_CUR)
        kind = gpgme.gpgme_data_identify(dh.wrapped, 0)
        gpgme.gpgme_data_seek(dh.wrapped, 0, os.SEEK_SET)
        try:
            head = gpgme.gpgme_data_read(dh.wrapped, self._armor_sniff)
        except self.gpg_errors.GPGMEError as e:
            return e.error
        finally:
            gpgme.gpgme_data_seek(dh.wrapped, position, os.SEEK_SET)
        armored = head.lstrip().startswith(b'-----BEGIN ')

        if kind == gpgme.GPGME_DATA_TYPE_INVALID:
            ref.value = data_type.INVALID
        elif kind == gpgme.GPGME_DATA_TYPE_UNKNOWN:
            ref.value = data_type.UNKNOWN
        elif kind == gpgme.GPGME_DATA_TYPE_PGP_SIGNATURE:
            ref.value = data_type.PGP_SIGNATURE
        elif kind in (gpgme.GPGME_DATA_TYPE_PGP_SIGNED,
                      gpgme.GPGME_DATA_TYPE_PGP_ENCRYPTED,
                      gpgme.GPGME_DATA_TYPE_PGP_OTHER,
                      gpgme.GPGME_DATA_TYPE_PGP_KEY):
            ref.value = (data_type.PGP_ARMORED
                         if armored else data_type.PGP_BINARY)
        elif kind in (gpgme.GPGME_DATA_TYPE_CMS_SIGNED,
                      gpgme.GPGME_DATA_TYPE_CMS_ENCRYPTED):
            ref.value = (data_type.CMS_ARMORED
                         if armored else data_type.CMS_BINARY)
        else:
            ref.value = data_type.CMS_OTHER

    def _data_get_encoding(self, dh, ref):
        ref.value = self.gpgme.gpgme_data_get_encoding(dh.wrapped)

    def _data_set_encoding(self, dh, enc):
        return self.gpgme.gpgme_data_set_encoding(dh.wrapped, enc)

    # Global queries.

    def _get_engine_info(self, ref):
        ptr = self.gpgme.new_gpgme_engine_info_t_p()
        status = self.gpgme.gpgme_get_engine_info(ptr)
        if not status:
            ref.value = self.gpgme.gpgme_engine_info_t_p_value(ptr)
        self.gpgme.delete_gpgme_engine_info_t_p(ptr)
        return status

    def _get_protocol_name(self, proto, ref):
        ref.value = self.gpgme.gpgme_get_protocol_name(proto)
