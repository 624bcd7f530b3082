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

import logging
from getpass import getpass

log = logging.getLogger(__name__)


def passphrase_stdin(hint, desc, prev_bad, hook=None):
    """Prompt for the passphrase of HINT on the terminal.

    A hook, if given, is appended to the prompt to say why the
    passphrase is needed.

    """
    prompt = "Passphrase for {}".format(hint)
    if hook is not None:
        prompt += " ({})".format(hook)
    if prev_bad:
        prompt += ", bad passphrase, try again"
    return getpass(prompt + ": ")


def progress_stdout(what, type, current, total, hook=None):
    print("{}: {}/{} ({})".format(what, current, total, chr(type)))


def progress_log(what, type, current, total, hook=None):
    """Report progress to the logging system, to the logger given as
    hook if any."""
    logger = hook if hook is not None else log
    logger.info("progress: what = %s, type = %d, current = %d, total = %d",
                what, type, current, total)


def file_cbs(fileobj):
    """Data callbacks over a Python file-like object.

    Returns a tuple suitable for Data(cbs=...), with FILEOBJ as hook.
    The file object is not closed on release.

    """

    def read(amount, hook):
        # Should return b'' on EOF
        return hook.read(amount)

    def write(data, hook):
        return hook.write(data)

    def seek(offset, whence, hook):
        return hook.seek(offset, whence)

    def release(hook):
        flush = getattr(hook, 'flush', None)
        if flush is not None:
            flush()

    return (read, write, seek, release, fileobj)
