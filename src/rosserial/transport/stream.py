""" Blocking byte stream wrappers. The bridge never touches a raw file,
    socket, or serial port directly; it reads through a :class:`Reader`,
    which only ever returns exactly the number of bytes requested, and writes
    through a :class:`Writer`, which flushes every write. Both convert any
    low-level failure into a :class:`rosserial.errors.TransportFault`.
"""

import socket
import threading

from ..errors import TransportClosed, TransportFault


class Reader:
    """ Exact-count reads from a file-like *raw* object with a ``read(n)``
        method.

        If *eof_on_empty* is True (the default, appropriate for pipes,
        sockets, and regular files) an empty read means the stream is
        finished. Serial ports opened with a read timeout return empty reads
        routinely; for those, *eof_on_empty* should be False, and the reader
        keeps waiting until :func:`close` is called.

        *interrupt*, if provided, is invoked by :func:`close` to wake up a
        thread blocked in a read; the default attempts ``raw.cancel_read()``,
        which pyserial provides.
    """

    def __init__(self, raw, eof_on_empty=True, interrupt=None):

        self.raw = raw
        self.eof_on_empty = eof_on_empty
        self.interrupt = interrupt
        self.closed = False
        self.received = 0


    def read(self, count):
        """ Return exactly *count* bytes. Raises
            :class:`rosserial.errors.TransportClosed` if the stream ends (or
            is closed) first, and :class:`rosserial.errors.TransportFault` for
            any other read failure.
        """

        chunks = list()
        remaining = count

        while remaining > 0:
            if self.closed:
                raise TransportClosed('stream closed')

            try:
                chunk = self.raw.read(remaining)
            except (OSError, ValueError) as e:
                if self.closed:
                    raise TransportClosed('stream closed') from e
                raise TransportFault('read failed: ' + str(e)) from e

            if not chunk:
                if self.eof_on_empty:
                    raise TransportClosed('end of stream')
                continue

            chunks.append(chunk)
            remaining -= len(chunk)

        self.received += count
        return b''.join(chunks)


    def close(self):
        """ Mark the reader closed, wake any blocked reader thread, and close
            the underlying object. Calling :func:`close` more than once is
            harmless.
        """

        if self.closed:
            return

        self.closed = True

        interrupt = self.interrupt
        if interrupt is None:
            interrupt = getattr(self.raw, 'cancel_read', None)

        if interrupt is not None:
            try:
                interrupt()
            except (OSError, ValueError):
                pass

        try:
            self.raw.close()
        except (OSError, ValueError):
            pass


# end of class Reader



class Writer:
    """ Flushed writes to a file-like *raw* object. Writes are not serialized
        here; :class:`rosserial.protocol.sender.PacketSender` owns the lock
        that keeps whole frames from interleaving.
    """

    def __init__(self, raw):

        self.raw = raw
        self.closed = False
        self.sent = 0


    def write(self, data):

        if self.closed:
            raise TransportClosed('stream closed')

        view = memoryview(data)

        try:
            while len(view) > 0:
                written = self.raw.write(view)

                # Raw (unbuffered) objects may accept a partial write, and
                # report None when they would block.
                if written is None:
                    written = 0
                view = view[written:]

            flush = getattr(self.raw, 'flush', None)
            if flush is not None:
                flush()

        except (OSError, ValueError) as e:
            if self.closed:
                raise TransportClosed('stream closed') from e
            raise TransportFault('write failed: ' + str(e)) from e

        self.sent += len(data)


    def close(self):

        if self.closed:
            return

        self.closed = True

        try:
            self.raw.close()
        except (OSError, ValueError):
            pass


# end of class Writer



def socket_streams(sock):
    """ Return a (:class:`Reader`, :class:`Writer`) pair for a connected
        stream socket. Closing the reader shuts the socket down, which is what
        it takes to unblock a thread sitting in ``recv()``.
    """

    raw_in = sock.makefile('rb', buffering=0)
    raw_out = sock.makefile('wb', buffering=0)

    lock = threading.Lock()
    state = {'shutdown': False}

    def interrupt():
        with lock:
            if state['shutdown']:
                return
            state['shutdown'] = True

        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # Already disconnected.
            pass

    reader = Reader(raw_in, eof_on_empty=True, interrupt=interrupt)
    writer = Writer(raw_out)
    return reader, writer


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
