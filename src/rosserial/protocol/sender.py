""" The single writer side of the serial link.
"""

import threading

from . import frame


class PacketSender:
    """ Encode frames and write them to *writer*, a
        :class:`rosserial.transport.Writer` or any object with a compatible
        ``write()`` method.

        The lock around encode+write is necessary in a multithreaded
        application; bus callbacks and the bridge reader thread both send, and
        without the lock the bytes of two frames can and will get mixed
        together on the wire.

        :ivar frames: The number of frames written so far.
    """

    def __init__(self, writer):

        self.writer = writer
        self.lock = threading.Lock()
        self.frames = 0


    def send(self, topic_id, payload=b''):
        """ Write one frame carrying *payload* on *topic_id*. Any write
            failure propagates as :class:`rosserial.errors.TransportFault`;
            there is no retry.
        """

        with self.lock:
            data = frame.encode(topic_id, payload)
            self.writer.write(data)
            self.frames += 1


    def close(self):

        with self.lock:
            self.writer.close()


# end of class PacketSender


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
